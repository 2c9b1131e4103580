"""Service lookup across the three service catalogs, plus legacy duration repair."""

import logging
import re
from decimal import Decimal
from uuid import UUID
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import MissingDurationError, NotFoundError
from app.models.booking import Booking
from app.models.service import (
    GlobalService,
    LegacyService,
    ProviderServiceEntry,
    ProviderServiceOverride,
)
from app.schemas.booking import ServiceInfo
from app.utils.time_utils import minutes_between

logger = logging.getLogger(__name__)

_NOTES_DURATION_RE = re.compile(r"(\d+)\s*min", re.IGNORECASE)


async def resolve_service(db: AsyncSession, service_id: UUID, provider_id: UUID) -> ServiceInfo:
    """Resolve a service id to (id, name, duration, price).

    Lookup order: provider service table, legacy services, global catalog
    (with the provider's custom price/duration when one exists).
    """
    result = await db.execute(
        select(ProviderServiceEntry).where(ProviderServiceEntry.id == service_id)
    )
    entry = result.scalar_one_or_none()
    if entry:
        return ServiceInfo(
            id=entry.id,
            name=entry.service_name,
            duration=entry.time,
            price=Decimal(entry.price),
            type="provider",
        )

    result = await db.execute(select(LegacyService).where(LegacyService.id == service_id))
    legacy = result.scalar_one_or_none()
    if legacy:
        return ServiceInfo(
            id=legacy.id,
            name=legacy.name,
            duration=legacy.duration,
            price=Decimal(legacy.price),
            type="legacy",
        )

    result = await db.execute(select(GlobalService).where(GlobalService.id == service_id))
    global_service = result.scalar_one_or_none()
    if global_service:
        override_result = await db.execute(
            select(ProviderServiceOverride).where(
                and_(
                    ProviderServiceOverride.provider_id == provider_id,
                    ProviderServiceOverride.global_service_id == service_id,
                )
            )
        )
        override = override_result.scalar_one_or_none()
        duration = global_service.base_duration
        price = global_service.base_price
        if override:
            duration = override.custom_duration or duration
            price = override.custom_price if override.custom_price is not None else price
        return ServiceInfo(
            id=global_service.id,
            name=global_service.name,
            duration=duration,
            price=Decimal(price),
            type="global",
        )

    raise NotFoundError(f"Service {service_id} not found")


async def resolve_booking_duration(db: AsyncSession, booking: Booking) -> int:
    """Duration in minutes of a stored booking.

    Bookings created by the atomic creator always carry an end time. Older
    rows may not; for those, fall back to the referenced service and, as a
    last best-effort repair, a "<n> min" hint in the notes. If nothing
    works the read fails instead of guessing a default.
    """
    if booking.appointment_end_time is not None:
        return minutes_between(booking.appointment_date, booking.appointment_end_time)

    for ref in (booking.service_id, booking.global_service_id):
        if ref is None:
            continue
        try:
            return (await resolve_service(db, ref, booking.provider_id)).duration
        except NotFoundError:
            continue

    # Legacy data repair: free-text notes such as "Haircut (45 min)"
    if booking.notes:
        match = _NOTES_DURATION_RE.search(booking.notes)
        if match:
            duration = int(match.group(1))
            logger.warning(
                "Booking %s: duration %d min inferred from notes (legacy row without end time)",
                booking.token_number,
                duration,
            )
            return duration

    raise MissingDurationError(
        f"Cannot determine duration for booking {booking.token_number}"
    )
