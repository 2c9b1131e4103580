"""Clock-time and interval arithmetic shared by availability and booking code.

All interval comparisons in the scheduling services go through these helpers.
Minute offsets are minutes since local midnight in the provider's timezone;
stored timestamps are naive UTC.
"""

import re
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

_CLOCK_RE = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")

MINUTES_PER_DAY = 24 * 60


def time_to_minutes(clock: str) -> int:
    """Convert an "HH:MM" string to minutes since midnight.

    Callers own the format; anything else is a programming error.
    """
    match = _CLOCK_RE.match(clock)
    if not match:
        raise ValueError(f"Expected HH:MM clock string, got {clock!r}")
    return int(match.group(1)) * 60 + int(match.group(2))


def minutes_to_time(minutes: int) -> str:
    """Convert minutes since midnight to a zero-padded "HH:MM" string.

    No clamping: passing values outside [0, 1440) is the caller's problem.
    """
    hours, mins = divmod(minutes, 60)
    return f"{hours:02d}:{mins:02d}"


def intervals_overlap(start_a, end_a, start_b, end_b) -> bool:
    """Half-open overlap test; touching endpoints do not overlap.

    Works on minute offsets and on timestamps alike.
    """
    return start_a < end_b and start_b < end_a


def pad_interval(start: int, end: int, buffer: int) -> tuple[int, int]:
    return start - buffer, end + buffer


def day_of_week(target_date: date) -> int:
    """Day index with Sunday = 0 ... Saturday = 6."""
    return (target_date.weekday() + 1) % 7


def to_utc_naive(moment: datetime) -> datetime:
    """Normalise to naive UTC. Naive input is assumed to already be UTC."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def to_local_minutes(moment: datetime, tz_name: str) -> int:
    """Minutes since local midnight for a naive-UTC (or aware) timestamp."""
    local = _as_aware_utc(moment).astimezone(ZoneInfo(tz_name))
    return local.hour * 60 + local.minute


def to_local_date(moment: datetime, tz_name: str) -> date:
    return _as_aware_utc(moment).astimezone(ZoneInfo(tz_name)).date()


def local_to_utc(target_date: date, minutes: int, tz_name: str) -> datetime:
    """Naive UTC timestamp for `minutes` past local midnight on `target_date`."""
    local_midnight = datetime.combine(target_date, time(0, 0), tzinfo=ZoneInfo(tz_name))
    return to_utc_naive(local_midnight + timedelta(minutes=minutes))


def local_day_bounds(target_date: date, tz_name: str) -> tuple[datetime, datetime]:
    """Naive UTC [start, end) covering the provider-local calendar day."""
    return (
        local_to_utc(target_date, 0, tz_name),
        local_to_utc(target_date + timedelta(days=1), 0, tz_name),
    )


def local_today(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def add_minutes(moment: datetime, minutes: int) -> datetime:
    return moment + timedelta(minutes=minutes)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes from start to end, rounded to the nearest minute."""
    return round((end - start).total_seconds() / 60)


def _as_aware_utc(moment: datetime) -> datetime:
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment
