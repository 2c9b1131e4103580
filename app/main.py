import asyncio
import logging
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from app.api.v1.router import api_router
from app.core.config import settings
from app.core.database import async_session, engine
from app.core.dependencies import build_scheduling_services
from app.services.schedule_cache import ScheduleCache
from contextlib import asynccontextmanager

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
logger = logging.getLogger(__name__)


async def run_cache_cleanup(cache: ScheduleCache, interval_seconds: int):
    """Periodically drop expired schedule cache entries."""
    while True:
        await asyncio.sleep(interval_seconds)
        removed = cache.cleanup()
        if removed:
            logger.debug("Schedule cache cleanup removed %d entries", removed)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events."""
    # Startup: wire services and start cache housekeeping
    app.state.scheduling = build_scheduling_services(async_session)
    cleanup_task = asyncio.create_task(
        run_cache_cleanup(app.state.scheduling.cache, settings.SCHEDULE_CACHE_CLEANUP_INTERVAL_SECONDS)
    )
    logger.info("Scheduling services started (%s)", settings.APP_ENV)
    yield
    # Shutdown
    cleanup_task.cancel()
    try:
        await cleanup_task
    except asyncio.CancelledError:
        pass
    await engine.dispose()


app = FastAPI(
    title="Beauty Marketplace Scheduling API",
    description="Provider availability and atomic booking for the beauty services marketplace",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "service": "scheduling-api", "version": "0.1.0"}
