"""Shared test fixtures for the scheduling API tests.

Uses an in-memory SQLite async engine so tests run without PostgreSQL.
"""

import uuid
from datetime import date, datetime, timedelta
from decimal import Decimal
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker

from app.core.database import Base, get_db
from app.core.dependencies import build_scheduling_services
from app.main import app

# Import all models to ensure they're registered with Base.metadata
from app.models.booking import Booking, BookingStatus
from app.models.provider import Provider
from app.models.schedule import Schedule
from app.models.service import GlobalService, LegacyService, ProviderServiceEntry, ProviderServiceOverride  # noqa: F401
from app.models.staff_member import StaffMember


# Use aiosqlite for fast, isolated tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestSession = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# A Monday comfortably in the future, so past-date suppression never kicks in
MONDAY = date(2030, 1, 7)
TZ = "Asia/Kolkata"

# UUID columns are CHAR(32) hex on SQLite, where the column gets NUMERIC
# affinity: an all-digit id is stored as a number and cannot be read back as a
# UUID. Hard-coded test ids must contain at least one hex letter.


def utc(day: date, clock: str) -> datetime:
    """Naive UTC timestamp for an Asia/Kolkata (UTC+5:30) local clock time."""
    hours, minutes = map(int, clock.split(":"))
    return datetime(day.year, day.month, day.day, hours, minutes) - timedelta(hours=5, minutes=30)


@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


async def override_get_db():
    async with TestSession() as session:
        yield session


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture(autouse=True)
def services():
    """Fresh cache, repository, calculator and booking service per test."""
    scheduling = build_scheduling_services(TestSession)
    app.state.scheduling = scheduling
    return scheduling


@pytest_asyncio.fixture
async def client():
    """Async HTTP test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest_asyncio.fixture
async def db():
    """Direct DB session for test setup/assertions."""
    async with TestSession() as session:
        yield session


@pytest_asyncio.fixture
async def make_provider(db):
    """Factory: provider open Monday 09:00-18:00 with a 13:00-14:00 break."""

    async def _make(
        staff_names=("Asha",),
        start_time="09:00",
        end_time="18:00",
        break_start_time="13:00",
        break_end_time="14:00",
        day_of_week=1,
        is_available=True,
        max_slots=1,
        staff_count=1,
    ):
        provider = Provider(business_name="Glow Studio", staff_count=staff_count)
        db.add(provider)
        await db.flush()

        db.add(Schedule(
            provider_id=provider.id,
            day_of_week=day_of_week,
            start_time=start_time,
            end_time=end_time,
            break_start_time=break_start_time,
            break_end_time=break_end_time,
            is_available=is_available,
            max_slots=max_slots,
            timezone=TZ,
        ))

        staff = []
        for i, name in enumerate(staff_names):
            member = StaffMember(
                provider_id=provider.id,
                name=name,
                created_at=datetime(2029, 1, 1) + timedelta(minutes=i),
            )
            db.add(member)
            staff.append(member)
        await db.commit()

        return {
            "provider_id": provider.id,
            "staff_ids": [m.id for m in staff],
        }

    return _make


@pytest_asyncio.fixture
async def make_booking(db):
    """Factory: insert a booking directly, bypassing the creator."""

    async def _make(provider_id, local_start, duration=30, staff_member_id=None,
                    status=BookingStatus.PENDING, day=MONDAY, with_end=True, **fields):
        start = utc(day, local_start)
        booking = Booking(
            client_id=uuid.uuid4(),
            provider_id=provider_id,
            staff_member_id=staff_member_id,
            appointment_date=start,
            appointment_end_time=start + timedelta(minutes=duration) if with_end else None,
            status=status,
            total_price=Decimal("500.00"),
            token_number=fields.pop("token_number", f"BML-TEST-{uuid.uuid4().hex[:8].upper()}"),
            **fields,
        )
        db.add(booking)
        await db.commit()
        return booking

    return _make
