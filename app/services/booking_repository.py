"""Booking reads used by availability and conflict checks.

Rows come back as BookedInterval values with a resolved end time, so the
scheduling code never deals with legacy rows that lack one.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional
from uuid import UUID
from sqlalchemy import select, and_, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.booking import Booking, BookingStatus
from app.services.service_catalog import resolve_booking_duration
from app.utils.time_utils import add_minutes, intervals_overlap, local_day_bounds, MINUTES_PER_DAY

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BookedInterval:
    booking_id: UUID
    token_number: str
    staff_member_id: Optional[UUID]
    start: datetime  # naive UTC
    end: datetime  # naive UTC, unbuffered

    def blocks(self, staff_member_id: Optional[UUID]) -> bool:
        """Unassigned bookings block every timeline; assigned ones only their own."""
        return self.staff_member_id is None or self.staff_member_id == staff_member_id


async def _to_interval(db: AsyncSession, booking: Booking) -> BookedInterval:
    end = booking.appointment_end_time
    if end is None:
        end = add_minutes(booking.appointment_date, await resolve_booking_duration(db, booking))
    return BookedInterval(
        booking_id=booking.id,
        token_number=booking.token_number,
        staff_member_id=booking.staff_member_id,
        start=booking.appointment_date,
        end=end,
    )


async def get_day_bookings(
    db: AsyncSession, provider_id: UUID, target_date: date, tz_name: str
) -> list[BookedInterval]:
    """Non-cancelled bookings starting on the provider-local calendar day."""
    day_start, day_end = local_day_bounds(target_date, tz_name)
    result = await db.execute(
        select(Booking)
        .where(
            and_(
                Booking.provider_id == provider_id,
                Booking.appointment_date >= day_start,
                Booking.appointment_date < day_end,
                Booking.status != BookingStatus.CANCELLED,
            )
        )
        .order_by(Booking.appointment_date)
    )
    return [await _to_interval(db, booking) for booking in result.scalars().all()]


async def find_conflicting_bookings(
    db: AsyncSession,
    provider_id: UUID,
    staff_member_id: Optional[UUID],
    start: datetime,
    end: datetime,
    buffer_minutes: int,
) -> list[BookedInterval]:
    """Live bookings whose interval comes within `buffer_minutes` of [start, end).

    With a staff member: that member's bookings plus unassigned ones.
    Without: every booking of the provider.
    """
    padded_start = add_minutes(start, -buffer_minutes)
    padded_end = add_minutes(end, buffer_minutes)

    conditions = [
        Booking.provider_id == provider_id,
        Booking.status != BookingStatus.CANCELLED,
        Booking.appointment_date < padded_end,
        or_(
            Booking.appointment_end_time > padded_start,
            and_(
                Booking.appointment_end_time.is_(None),
                Booking.appointment_date > add_minutes(padded_start, -MINUTES_PER_DAY),
            ),
        ),
    ]
    if staff_member_id is not None:
        conditions.append(
            or_(Booking.staff_member_id == staff_member_id, Booking.staff_member_id.is_(None))
        )

    result = await db.execute(
        select(Booking).where(and_(*conditions)).order_by(Booking.appointment_date)
    )

    conflicts = []
    for booking in result.scalars().all():
        interval = await _to_interval(db, booking)
        if intervals_overlap(padded_start, padded_end, interval.start, interval.end):
            conflicts.append(interval)
    return conflicts
