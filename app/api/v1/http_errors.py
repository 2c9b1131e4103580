"""Map scheduling failures onto HTTP responses."""

from fastapi import HTTPException

from app.core.errors import BookingErrorKind, NotFoundError, SchedulingError

STATUS_BY_KIND = {
    BookingErrorKind.INVALID_INPUT: 400,
    BookingErrorKind.REJECTED: 422,
    BookingErrorKind.CONFLICT: 409,
    BookingErrorKind.RETRY_EXHAUSTED: 503,
}


def as_http_exception(exc: SchedulingError) -> HTTPException:
    status_code = 404 if isinstance(exc, NotFoundError) else STATUS_BY_KIND[exc.kind]
    return HTTPException(status_code=status_code, detail=exc.message)
