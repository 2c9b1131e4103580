"""Scheduling service wiring and the FastAPI dependencies that expose it.

`build_scheduling_services` is called once by the app lifespan (and by the
test fixtures); the resulting container lives on `app.state.scheduling`.
"""

from dataclasses import dataclass
from fastapi import Request
from sqlalchemy.ext.asyncio import async_sessionmaker

from app.core.config import Settings, settings
from app.services.availability import AvailabilityCalculator
from app.services.booking_service import BookingService
from app.services.schedule_cache import ScheduleCache
from app.services.schedule_repository import ScheduleRepository


@dataclass
class SchedulingServices:
    cache: ScheduleCache
    repository: ScheduleRepository
    availability: AvailabilityCalculator
    bookings: BookingService


def build_scheduling_services(
    session_factory: async_sessionmaker,
    config: Settings = settings,
) -> SchedulingServices:
    cache = ScheduleCache(
        ttl_seconds=config.SCHEDULE_CACHE_TTL_SECONDS,
        maxsize=config.SCHEDULE_CACHE_MAXSIZE,
    )
    repository = ScheduleRepository(cache)
    availability = AvailabilityCalculator(
        repository,
        slot_duration=config.SLOT_DURATION_MINUTES,
        buffer_minutes=config.BOOKING_BUFFER_MINUTES,
        max_range_days=config.MAX_RANGE_DAYS,
    )
    bookings = BookingService(
        session_factory,
        repository,
        buffer_minutes=config.BOOKING_BUFFER_MINUTES,
        max_retries=config.BOOKING_MAX_RETRIES,
        retry_base_delay_ms=config.BOOKING_RETRY_BASE_DELAY_MS,
        retry_max_delay_ms=config.BOOKING_RETRY_MAX_DELAY_MS,
        transaction_timeout=config.BOOKING_TRANSACTION_TIMEOUT_SECONDS,
    )
    return SchedulingServices(
        cache=cache,
        repository=repository,
        availability=availability,
        bookings=bookings,
    )


def get_scheduling(request: Request) -> SchedulingServices:
    return request.app.state.scheduling


def get_schedule_repository(request: Request) -> ScheduleRepository:
    return get_scheduling(request).repository


def get_availability_calculator(request: Request) -> AvailabilityCalculator:
    return get_scheduling(request).availability


def get_booking_service(request: Request) -> BookingService:
    return get_scheduling(request).bookings
