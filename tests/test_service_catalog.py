"""Tests for service resolution across catalogs and legacy duration repair."""

import uuid
from decimal import Decimal
import pytest

from app.core.errors import MissingDurationError, NotFoundError
from app.models.service import GlobalService, LegacyService, ProviderServiceEntry, ProviderServiceOverride
from app.services.service_catalog import resolve_booking_duration, resolve_service


@pytest.mark.asyncio
async def test_provider_table_entry(db, make_provider):
    seeded = await make_provider()
    entry = ProviderServiceEntry(
        provider_id=seeded["provider_id"], service_name="Threading", price=Decimal("150.00"), time=15
    )
    db.add(entry)
    await db.commit()

    info = await resolve_service(db, entry.id, seeded["provider_id"])
    assert info.type == "provider"
    assert info.name == "Threading"
    assert info.duration == 15
    assert info.price == Decimal("150.00")


@pytest.mark.asyncio
async def test_legacy_service(db, make_provider):
    seeded = await make_provider()
    service = LegacyService(
        provider_id=seeded["provider_id"], name="Haircut", price=Decimal("400.00"), duration=45
    )
    db.add(service)
    await db.commit()

    info = await resolve_service(db, service.id, seeded["provider_id"])
    assert info.type == "legacy"
    assert info.duration == 45


@pytest.mark.asyncio
async def test_global_service_with_and_without_override(db, make_provider):
    with_override = await make_provider()
    without_override = await make_provider()
    service = GlobalService(name="Manicure", base_price=Decimal("600.00"), base_duration=40)
    db.add(service)
    await db.flush()
    db.add(ProviderServiceOverride(
        provider_id=with_override["provider_id"],
        global_service_id=service.id,
        custom_price=Decimal("750.00"),
        custom_duration=None,
    ))
    await db.commit()

    custom = await resolve_service(db, service.id, with_override["provider_id"])
    assert custom.type == "global"
    assert custom.price == Decimal("750.00")
    assert custom.duration == 40

    base = await resolve_service(db, service.id, without_override["provider_id"])
    assert base.price == Decimal("600.00")


@pytest.mark.asyncio
async def test_unknown_service(db, make_provider):
    seeded = await make_provider()
    with pytest.raises(NotFoundError):
        await resolve_service(db, uuid.uuid4(), seeded["provider_id"])


@pytest.mark.asyncio
async def test_duration_from_end_time_then_service_then_notes(db, make_provider, make_booking):
    seeded = await make_provider()
    service = LegacyService(
        provider_id=seeded["provider_id"], name="Pedicure", price=Decimal("500.00"), duration=50
    )
    db.add(service)
    await db.commit()

    with_end = await make_booking(seeded["provider_id"], "10:00", duration=35)
    assert await resolve_booking_duration(db, with_end) == 35

    from_service = await make_booking(seeded["provider_id"], "11:00", with_end=False, service_id=service.id)
    assert await resolve_booking_duration(db, from_service) == 50

    from_notes = await make_booking(seeded["provider_id"], "12:00", with_end=False, notes="Bridal trial 90 mins")
    assert await resolve_booking_duration(db, from_notes) == 90

    unknown = await make_booking(seeded["provider_id"], "15:00", with_end=False)
    with pytest.raises(MissingDurationError):
        await resolve_booking_duration(db, unknown)
