"""Availability calculation for a provider on a given day.

Two views over the same data:

- Mode A, `generate_available_slots`: a grid of discrete slots stepping by
  service duration + buffer from opening time, each annotated with the first
  free staff member and aggregate capacity counts.
- Mode B, `calculate_flexible_availability`: per staff member, the free
  windows left once the padded break and padded bookings are removed from
  working hours.

Every active staff member is an independent timeline. Unassigned bookings
block all timelines. A provider with no active staff gets a single
provider-level timeline (staff id None).

Two bookings on one timeline must be separated by at least the buffer:
a candidate [s, e) conflicts with booking [bs, be) when it overlaps
[bs - buffer, be + buffer). The break is padded the same way.
"""

import logging
import time
from datetime import date, datetime, timedelta
from typing import Optional, Union
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import InvalidInputError, NotFoundError
from app.schemas.availability import (
    AvailableSlot,
    AvailableWindow,
    SlotCheckResult,
    StaffAvailability,
)
from app.schemas.schedule import ScheduleOut, StaffMemberOut
from app.services.booking_repository import (
    BookedInterval,
    find_conflicting_bookings,
    get_day_bookings,
)
from app.services.schedule_repository import ScheduleRepository
from app.utils.time_utils import (
    add_minutes,
    day_of_week,
    intervals_overlap,
    local_to_utc,
    local_today,
    minutes_between,
    minutes_to_time,
    pad_interval,
    time_to_minutes,
    to_local_minutes,
)

logger = logging.getLogger(__name__)

CLOSED_DAY_REASON = "Provider not available on this day"
OUTSIDE_HOURS_REASON = "Requested time is outside working hours"
BREAK_REASON = "Requested time conflicts with break time (including buffer)"


def parse_date(value: Union[date, str]) -> date:
    """Accept a date or an ISO "YYYY-MM-DD" string; anything else is an input error."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError):
        raise InvalidInputError(f"Invalid date format: {value!r}")


def schedule_violation(
    schedule: Optional[ScheduleOut], start: int, end: int, buffer_minutes: int
) -> Optional[str]:
    """Why [start, end) (local minutes) cannot be booked on this schedule, or None."""
    if schedule is None or not schedule.is_available:
        return CLOSED_DAY_REASON

    if start < time_to_minutes(schedule.start_time) or end > time_to_minutes(schedule.end_time):
        return OUTSIDE_HOURS_REASON

    if schedule.has_break:
        break_start, break_end = pad_interval(
            time_to_minutes(schedule.break_start_time),
            time_to_minutes(schedule.break_end_time),
            buffer_minutes,
        )
        if intervals_overlap(start, end, break_start, break_end):
            return BREAK_REASON

    return None


class _LocalBooking:
    """A booking projected onto provider-local minutes for one day."""

    __slots__ = ("interval", "start", "end")

    def __init__(self, interval: BookedInterval, tz_name: str):
        self.interval = interval
        self.start = to_local_minutes(interval.start, tz_name)
        self.end = self.start + minutes_between(interval.start, interval.end)


class AvailabilityCalculator:

    def __init__(
        self,
        repository: ScheduleRepository,
        slot_duration: int = 15,
        buffer_minutes: int = 5,
        max_range_days: int = 90,
    ):
        self.repository = repository
        self.slot_duration = slot_duration
        self.buffer_minutes = buffer_minutes
        self.max_range_days = max_range_days

    # ------------------------------------------------------------------
    # Mode A: discrete slots
    # ------------------------------------------------------------------

    async def generate_available_slots(
        self,
        db: AsyncSession,
        provider_id: UUID,
        target_date: Union[date, str],
        service_duration: Optional[int] = None,
        slot_duration: Optional[int] = None,
        buffer_time: Optional[int] = None,
        include_past_slots: bool = False,
    ) -> list[AvailableSlot]:
        started = time.perf_counter()
        target_date = parse_date(target_date)
        buffer_time = self.buffer_minutes if buffer_time is None else buffer_time
        duration = service_duration or slot_duration or self.slot_duration
        _check_duration(duration)

        provider = await self.repository.get_provider(db, provider_id)
        if provider is None:
            raise NotFoundError("Provider not found")

        schedule = await self.repository.get_schedule(db, provider_id, day_of_week(target_date))
        if schedule is None or not schedule.is_available:
            return []

        if not include_past_slots and target_date < local_today(schedule.timezone):
            return []

        staff = await self.repository.get_active_staff(db, provider_id)
        max_parallel_slots = max(schedule.max_slots, len(staff), provider.staff_count or 0)

        bookings = [
            _LocalBooking(interval, schedule.timezone)
            for interval in await get_day_bookings(db, provider_id, target_date, schedule.timezone)
        ]
        timelines: list[Optional[StaffMemberOut]] = list(staff) or [None]

        slots = []
        for slot_start, slot_end in self._grid_candidates(schedule, duration, buffer_time):
            busy_by = {}
            for timeline in timelines:
                timeline_id = timeline.id if timeline else None
                busy_by[timeline_id] = [
                    b for b in bookings
                    if b.interval.blocks(timeline_id)
                    and intervals_overlap(slot_start, slot_end, *pad_interval(b.start, b.end, buffer_time))
                ]

            free = [t for t in timelines if not busy_by[t.id if t else None]]
            if not free:
                continue

            overlapping = {b.interval.booking_id for conflicts in busy_by.values() for b in conflicts}
            assigned = free[0]
            slots.append(
                AvailableSlot(
                    start_time=minutes_to_time(slot_start),
                    end_time=minutes_to_time(slot_end),
                    date=target_date,
                    staff_member_id=assigned.id if assigned else None,
                    staff_member_name=assigned.name if assigned else None,
                    max_capacity=max_parallel_slots,
                    current_bookings=len(overlapping),
                    available_spots=len(free),
                    duration=duration,
                )
            )

        logger.info(
            "Generated %d slots for provider %s on %s in %.1fms",
            len(slots),
            provider_id,
            target_date,
            (time.perf_counter() - started) * 1000,
        )
        return slots

    @staticmethod
    def _grid_candidates(schedule: ScheduleOut, duration: int, buffer_time: int) -> list[tuple[int, int]]:
        """Candidate [start, end) pairs from opening time, skipping the padded break."""
        working_start = time_to_minutes(schedule.start_time)
        working_end = time_to_minutes(schedule.end_time)

        padded_break = None
        if schedule.has_break:
            break_end = time_to_minutes(schedule.break_end_time)
            padded_break = pad_interval(time_to_minutes(schedule.break_start_time), break_end, buffer_time)

        candidates = []
        current = working_start
        while current + duration <= working_end:
            if padded_break and intervals_overlap(current, current + duration, *padded_break):
                current = padded_break[1]
                continue
            candidates.append((current, current + duration))
            current += duration + buffer_time
        return candidates

    async def generate_available_slots_for_range(
        self,
        db: AsyncSession,
        provider_id: UUID,
        start_date: Union[date, str],
        end_date: Union[date, str],
        service_duration: Optional[int] = None,
        **options,
    ) -> dict[date, list[AvailableSlot]]:
        """Mode A for each day in [start_date, end_date]; days without slots are omitted."""
        start_date = parse_date(start_date)
        end_date = parse_date(end_date)
        if end_date < start_date:
            raise InvalidInputError("end_date must not be before start_date")
        if (end_date - start_date).days > self.max_range_days:
            raise InvalidInputError(
                f"Date range too large. Maximum {self.max_range_days} days allowed."
            )

        days = {}
        current = start_date
        while current <= end_date:
            slots = await self.generate_available_slots(
                db, provider_id, current, service_duration, **options
            )
            if slots:
                days[current] = slots
            current += timedelta(days=1)
        return days

    # ------------------------------------------------------------------
    # Mode B: continuous free windows
    # ------------------------------------------------------------------

    async def calculate_flexible_availability(
        self,
        db: AsyncSession,
        provider_id: UUID,
        target_date: Union[date, str],
        service_duration: int,
        buffer_minutes: Optional[int] = None,
    ) -> list[StaffAvailability]:
        target_date = parse_date(target_date)
        buffer_minutes = self.buffer_minutes if buffer_minutes is None else buffer_minutes
        _check_duration(service_duration)

        schedule = await self.repository.get_schedule(db, provider_id, day_of_week(target_date))
        if schedule is None or not schedule.is_available:
            return []

        staff = await self.repository.get_active_staff(db, provider_id)
        bookings = [
            _LocalBooking(interval, schedule.timezone)
            for interval in await get_day_bookings(db, provider_id, target_date, schedule.timezone)
        ]

        working_start = time_to_minutes(schedule.start_time)
        working_end = time_to_minutes(schedule.end_time)

        result = []
        for member in list(staff) or [None]:
            member_id = member.id if member else None
            member_name = member.name if member else None

            blocked = []
            if schedule.has_break:
                blocked.append(pad_interval(
                    time_to_minutes(schedule.break_start_time),
                    time_to_minutes(schedule.break_end_time),
                    buffer_minutes,
                ))
            for booking in bookings:
                if booking.interval.blocks(member_id):
                    blocked.append(pad_interval(booking.start, booking.end, buffer_minutes))

            windows = []
            for window_start, window_end in _free_windows(blocked, working_start, working_end):
                if window_end - window_start < service_duration:
                    continue
                windows.append(
                    AvailableWindow(
                        start_time=minutes_to_time(window_start),
                        end_time=minutes_to_time(window_end),
                        staff_id=member_id,
                        staff_name=member_name,
                        can_fit_service=True,
                        next_available_start=minutes_to_time(window_start),
                    )
                )

            logger.debug("Staff %s: %d windows fit %d min", member_name, len(windows), service_duration)
            result.append(
                StaffAvailability(staff_id=member_id, staff_name=member_name, available_windows=windows)
            )

        return result

    # ------------------------------------------------------------------
    # Read-only check for a specific start time
    # ------------------------------------------------------------------

    async def check_slot_availability(
        self,
        db: AsyncSession,
        provider_id: UUID,
        target_date: Union[date, str],
        start_time: str,
        service_duration: int,
        staff_member_id: Optional[UUID] = None,
        buffer_minutes: Optional[int] = None,
    ) -> SlotCheckResult:
        """Would a booking at `start_time` (provider-local) be accepted right now?"""
        target_date = parse_date(target_date)
        buffer_minutes = self.buffer_minutes if buffer_minutes is None else buffer_minutes
        _check_duration(service_duration)
        try:
            start = time_to_minutes(start_time)
        except ValueError:
            raise InvalidInputError(f"Invalid start time: {start_time!r}")

        schedule = await self.repository.get_schedule(db, provider_id, day_of_week(target_date))
        reason = schedule_violation(schedule, start, start + service_duration, buffer_minutes)
        if reason:
            return SlotCheckResult(available=False, conflict_reason=reason)

        appointment_start = local_to_utc(target_date, start, schedule.timezone)
        conflicts = await find_conflicting_bookings(
            db,
            provider_id,
            staff_member_id,
            appointment_start,
            add_minutes(appointment_start, service_duration),
            buffer_minutes,
        )
        if conflicts:
            return SlotCheckResult(
                available=False,
                conflict_reason=f"Time slot conflicts with existing booking: {conflicts[0].token_number}",
            )
        return SlotCheckResult(available=True)


def _check_duration(duration: int) -> None:
    if duration is None or duration <= 0:
        raise InvalidInputError("Service duration must be a positive number of minutes")


def _free_windows(blocked: list[tuple[int, int]], working_start: int, working_end: int) -> list[tuple[int, int]]:
    """Complement of the merged blocked intervals within working hours."""
    merged: list[list[int]] = []
    for start, end in sorted(blocked):
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])

    windows = []
    cursor = working_start
    for start, end in merged:
        if start > cursor:
            window_end = min(start, working_end)
            if window_end > cursor:
                windows.append((cursor, window_end))
        cursor = max(cursor, end)
        if cursor >= working_end:
            break
    if cursor < working_end:
        windows.append((cursor, working_end))
    return windows
