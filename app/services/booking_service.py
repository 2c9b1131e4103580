"""Atomic booking creation.

Each attempt runs in its own transaction:

1. lock the provider row (and the staff row when one is requested)
2. re-read live bookings that come within the buffer of the requested interval
3. re-validate working hours and the padded break in provider-local time
4. insert the booking as pending and commit

Conflicts with committed bookings, closed days and out-of-hours requests are
deterministic and returned at once. Lost races (serialization failures,
deadlocks, lock timeouts, the overlap exclusion constraint, the per-attempt
timeout) are retried with exponential backoff up to `max_retries` attempts.

Row locks serialize writers across workers on PostgreSQL. A per-provider
asyncio.Lock serializes attempts inside one worker, which is also what keeps
dialects without SELECT ... FOR UPDATE (SQLite) correct.
"""

import asyncio
import logging
import secrets
import time
import weakref
from datetime import datetime
from typing import Optional
from uuid import UUID
from sqlalchemy import select, and_
from sqlalchemy.exc import DBAPIError, IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.errors import (
    BookingConflictError,
    BookingErrorKind,
    BookingRejectedError,
    InvalidInputError,
    NotFoundError,
    SchedulingError,
    TransientBookingError,
)
from app.models.booking import Booking, BookingStatus
from app.models.provider import Provider
from app.models.staff_member import StaffMember
from app.schemas.booking import BookingOut, BookingRequest, BookingResult
from app.services.availability import CLOSED_DAY_REASON, schedule_violation
from app.services.booking_repository import find_conflicting_bookings
from app.services.schedule_repository import ScheduleRepository
from app.utils.time_utils import add_minutes, to_local_minutes, to_utc_naive

logger = logging.getLogger(__name__)

# SQLSTATEs meaning "another transaction got there first"
TRANSIENT_SQLSTATES = {"40001", "40P01", "55P03"}
TRANSIENT_MARKERS = ("serializ", "deadlock", "database is locked", "could not obtain lock")
OVERLAP_CONSTRAINT = "no_overlapping_bookings"

MAX_RETRIES_MESSAGE = "Maximum retry attempts exceeded"

_BASE36 = "0123456789abcdefghijklmnopqrstuvwxyz"


def _to_base36(number: int) -> str:
    digits = []
    while True:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
        if number == 0:
            return "".join(reversed(digits))


def generate_token_number() -> str:
    """Human-readable booking reference, e.g. BML-LZ3K9Q1A-4F7XQ."""
    timestamp = _to_base36(int(time.time() * 1000))
    random_part = "".join(secrets.choice(_BASE36) for _ in range(5))
    return f"BML-{timestamp}-{random_part}".upper()


def is_transient_db_error(exc: DBAPIError) -> bool:
    """True when the failure means a concurrent writer won, not a broken request."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    if sqlstate in TRANSIENT_SQLSTATES:
        return True

    message = str(orig if orig is not None else exc).lower()
    if isinstance(exc, IntegrityError):
        # Overlap backstop or a concurrent insert of the same token;
        # the retry re-runs the checks and settles it deterministically.
        return OVERLAP_CONSTRAINT in message or "token_number" in message
    return any(marker in message for marker in TRANSIENT_MARKERS)


class BookingService:

    def __init__(
        self,
        session_factory: async_sessionmaker,
        repository: ScheduleRepository,
        buffer_minutes: int = 5,
        max_retries: int = 3,
        retry_base_delay_ms: int = 100,
        retry_max_delay_ms: int = 1000,
        transaction_timeout: float = 10.0,
    ):
        self.session_factory = session_factory
        self.repository = repository
        self.buffer_minutes = buffer_minutes
        self.max_retries = max_retries
        self.retry_base_delay_ms = retry_base_delay_ms
        self.retry_max_delay_ms = retry_max_delay_ms
        self.transaction_timeout = transaction_timeout
        # Entries vanish once no attempt holds the lock
        self._provider_locks: weakref.WeakValueDictionary[UUID, asyncio.Lock] = weakref.WeakValueDictionary()

    def retry_delay_ms(self, attempt: int) -> int:
        """Backoff before the attempt following `attempt` (1-based)."""
        return min(self.retry_base_delay_ms * 2 ** (attempt - 1), self.retry_max_delay_ms)

    async def create_booking(
        self,
        request: BookingRequest,
        buffer_time: Optional[int] = None,
        max_retries: Optional[int] = None,
    ) -> BookingResult:
        """Create a booking or return a typed failure. Never double-books.

        Storage failures that are not lost races propagate as exceptions.
        """
        buffer_time = self.buffer_minutes if buffer_time is None else buffer_time
        max_retries = self.max_retries if max_retries is None else max_retries
        started = time.perf_counter()

        if request.service_duration <= 0:
            return _failure(InvalidInputError("Service duration must be positive"), attempts=0)

        start = to_utc_naive(request.appointment_date)
        end = add_minutes(start, request.service_duration)

        for attempt in range(1, max_retries + 1):
            try:
                booking, replayed = await asyncio.wait_for(
                    self._attempt(request, start, end, buffer_time),
                    timeout=self.transaction_timeout,
                )
                logger.info(
                    "Booking %s %s in %.0fms (attempt %d)",
                    booking.token_number,
                    "replayed" if replayed else "created",
                    (time.perf_counter() - started) * 1000,
                    attempt,
                )
                return BookingResult(success=True, booking=booking, attempts=attempt, replayed=replayed)
            except SchedulingError as exc:
                logger.info(
                    "Booking %s rejected (%s): %s", request.token_number, exc.kind.value, exc.message
                )
                return _failure(exc, attempts=attempt)
            except TransientBookingError as exc:
                last_error = str(exc)
            except asyncio.TimeoutError:
                last_error = f"transaction exceeded {self.transaction_timeout}s"
            except DBAPIError as exc:
                if not is_transient_db_error(exc):
                    raise
                last_error = str(exc.orig if exc.orig is not None else exc)

            if attempt < max_retries:
                delay_ms = self.retry_delay_ms(attempt)
                logger.warning(
                    "Booking conflict detected, retrying in %dms (attempt %d/%d): %s",
                    delay_ms,
                    attempt,
                    max_retries,
                    last_error,
                )
                await asyncio.sleep(delay_ms / 1000)

        logger.error(
            "Booking %s failed after %d attempts in %.0fms",
            request.token_number,
            max_retries,
            (time.perf_counter() - started) * 1000,
        )
        return BookingResult(
            success=False,
            error=MAX_RETRIES_MESSAGE,
            error_kind=BookingErrorKind.RETRY_EXHAUSTED,
            attempts=max_retries,
        )

    def _provider_lock(self, provider_id: UUID) -> asyncio.Lock:
        lock = self._provider_locks.get(provider_id)
        if lock is None:
            lock = asyncio.Lock()
            self._provider_locks[provider_id] = lock
        return lock

    async def _attempt(
        self, request: BookingRequest, start: datetime, end: datetime, buffer_time: int
    ) -> tuple[BookingOut, bool]:
        async with self._provider_lock(request.provider_id):
            async with self.session_factory() as db:
                async with db.begin():
                    return await self._create_in_transaction(db, request, start, end, buffer_time)

    async def _create_in_transaction(
        self,
        db: AsyncSession,
        request: BookingRequest,
        start: datetime,
        end: datetime,
        buffer_time: int,
    ) -> tuple[BookingOut, bool]:
        await self._lock_rows(db, request.provider_id, request.staff_member_id)

        existing = await db.execute(select(Booking).where(Booking.token_number == request.token_number))
        existing = existing.scalar_one_or_none()
        if existing is not None:
            if (
                existing.provider_id == request.provider_id
                and existing.client_id == request.client_id
                and existing.appointment_date == start
            ):
                return BookingOut.model_validate(existing), True
            raise InvalidInputError(f"Token number {request.token_number} is already in use")

        conflicts = await find_conflicting_bookings(
            db, request.provider_id, request.staff_member_id, start, end, buffer_time
        )
        if conflicts:
            token = conflicts[0].token_number
            raise BookingConflictError(f"Time slot conflicts with existing booking: {token}", token)

        schedule = await self.repository.get_schedule_at_live(db, request.provider_id, start)
        if schedule is None:
            raise BookingRejectedError(CLOSED_DAY_REASON)
        local_start = to_local_minutes(start, schedule.timezone)
        reason = schedule_violation(
            schedule, local_start, local_start + request.service_duration, buffer_time
        )
        if reason:
            raise BookingRejectedError(reason)

        booking = Booking(
            client_id=request.client_id,
            provider_id=request.provider_id,
            staff_member_id=request.staff_member_id,
            service_id=request.service_id,
            global_service_id=request.global_service_id,
            appointment_date=start,
            appointment_end_time=end,
            status=BookingStatus.PENDING,
            service_price=request.service_price,
            platform_fee=request.platform_fee,
            total_price=request.total_price,
            token_number=request.token_number,
            notes=request.notes,
            payment_method=request.payment_method,
            client_name=request.client_name,
            client_phone=request.client_phone,
        )
        db.add(booking)
        try:
            await db.flush()
        except IntegrityError as exc:
            if is_transient_db_error(exc):
                raise TransientBookingError(str(exc.orig)) from exc
            raise InvalidInputError("Booking references unknown records") from exc
        return BookingOut.model_validate(booking), False

    async def _lock_rows(self, db: AsyncSession, provider_id: UUID, staff_member_id: Optional[UUID]) -> None:
        """SELECT ... FOR UPDATE on the provider and, if given, the staff member."""
        result = await db.execute(
            select(Provider).where(Provider.id == provider_id).with_for_update()
        )
        if result.scalar_one_or_none() is None:
            raise NotFoundError("Provider not found")

        if staff_member_id is None:
            return
        result = await db.execute(
            select(StaffMember)
            .where(
                and_(
                    StaffMember.id == staff_member_id,
                    StaffMember.provider_id == provider_id,
                )
            )
            .with_for_update()
        )
        staff = result.scalar_one_or_none()
        if staff is None:
            raise NotFoundError("Staff member not found for this provider")
        if not staff.is_active:
            raise BookingRejectedError("Staff member is not active")


def _failure(exc: SchedulingError, attempts: int) -> BookingResult:
    return BookingResult(
        success=False,
        error=exc.message,
        error_kind=exc.kind,
        conflicting_token=getattr(exc, "conflicting_token", None),
        attempts=attempts,
    )
