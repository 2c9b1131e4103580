"""Scheduling error taxonomy.

Input errors and business rejections are deterministic and never retried.
Transient errors only travel inside the booking creator's retry loop.
Anything else (connection loss, unexpected storage failures) is left as the
raw SQLAlchemy exception and propagates to the caller.
"""

import enum
from typing import Optional


class BookingErrorKind(str, enum.Enum):
    INVALID_INPUT = "invalid_input"
    REJECTED = "rejected"
    CONFLICT = "conflict"
    RETRY_EXHAUSTED = "retry_exhausted"


class SchedulingError(Exception):
    """Base class for typed scheduling failures."""

    kind: BookingErrorKind = BookingErrorKind.INVALID_INPUT

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(SchedulingError):
    """Malformed date, unknown provider/staff/service, bad duration."""

    kind = BookingErrorKind.INVALID_INPUT


class NotFoundError(InvalidInputError):
    """Referenced provider, staff member, service or booking does not exist."""


class MissingDurationError(InvalidInputError):
    """A stored booking has no end time and no recoverable duration."""


class BookingRejectedError(SchedulingError):
    """Deterministic business rejection (closed day, outside hours, break)."""

    kind = BookingErrorKind.REJECTED


class BookingConflictError(BookingRejectedError):
    """Requested interval collides with an already-committed booking."""

    kind = BookingErrorKind.CONFLICT

    def __init__(self, message: str, conflicting_token: Optional[str] = None):
        super().__init__(message)
        self.conflicting_token = conflicting_token


class TransientBookingError(Exception):
    """A concurrent writer won the race; the attempt may be retried."""
