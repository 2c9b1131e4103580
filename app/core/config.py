"""
Application configuration.
Values come from environment variables / .env file via pydantic-settings.
Scheduling knobs (cache TTL, buffer, retry policy) live here so the
composition root in app.main can wire them into the services.
"""
import logging
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    APP_ENV: str = "development"
    DATABASE_URL: str = "sqlite+aiosqlite:///./scheduling.db"
    DB_ECHO: bool = False
    LOG_LEVEL: str = "INFO"

    # Schedule / staff read-through cache
    SCHEDULE_CACHE_TTL_SECONDS: int = 300  # 5 minutes
    SCHEDULE_CACHE_CLEANUP_INTERVAL_SECONDS: int = 600  # 10 minutes
    SCHEDULE_CACHE_MAXSIZE: int = 10000

    # Booking creation
    BOOKING_BUFFER_MINUTES: int = 5
    BOOKING_MAX_RETRIES: int = 3
    BOOKING_RETRY_BASE_DELAY_MS: int = 100
    BOOKING_RETRY_MAX_DELAY_MS: int = 1000
    BOOKING_TRANSACTION_TIMEOUT_SECONDS: float = 10.0

    # Availability
    SLOT_DURATION_MINUTES: int = 15
    MAX_RANGE_DAYS: int = 90
    DEFAULT_PROVIDER_TIMEZONE: str = "Asia/Kolkata"

    class Config:
        env_file = ".env"


settings = Settings()

if settings.BOOKING_MAX_RETRIES < 1:
    raise ValueError("BOOKING_MAX_RETRIES must be at least 1")
