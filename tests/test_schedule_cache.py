"""Tests for the schedule/staff TTL cache and the repository that reads through it."""

import uuid
import pytest
from sqlalchemy import select

from app.models.schedule import Schedule
from app.models.staff_member import StaffMember
from app.services.schedule_cache import ScheduleCache, schedule_key, staff_key
from app.services.schedule_repository import ScheduleRepository


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


def test_entries_expire_after_ttl():
    clock = FakeClock()
    cache = ScheduleCache(ttl_seconds=300, clock=clock)
    cache.set("k", "v")

    clock.now += 299
    assert cache.get("k") == "v"

    clock.now += 2
    assert cache.get("k") is None
    assert cache.size() == 0


def test_none_is_never_cached():
    cache = ScheduleCache()
    cache.set("k", None)
    assert cache.size() == 0


def test_maxsize_bounds_the_cache():
    cache = ScheduleCache(maxsize=2)
    for key in ("a", "b", "c"):
        cache.set(key, key)
    assert cache.size() == 2
    assert cache.get("c") == "c"


def test_invalidate_provider_only_touches_that_provider():
    cache = ScheduleCache()
    mine, other = uuid.uuid4(), uuid.uuid4()
    for day in range(7):
        cache.set(schedule_key(mine, day), day)
    cache.set(staff_key(mine), ())
    cache.set(staff_key(other), ())

    cache.invalidate_provider(mine)

    assert cache.size() == 1
    assert cache.get(staff_key(other)) == ()


def test_cleanup_drops_only_expired_entries():
    clock = FakeClock()
    cache = ScheduleCache(ttl_seconds=60, clock=clock)
    cache.set("old", 1)

    clock.now += 30
    cache.set("new", 2)

    clock.now += 31
    assert cache.cleanup() == 1
    assert cache.get("new") == 2
    assert cache.get("old") is None

    cache.clear()
    assert cache.size() == 0


@pytest.mark.asyncio
async def test_repository_serves_schedule_from_cache_until_invalidated(db, make_provider):
    seeded = await make_provider()
    provider_id = seeded["provider_id"]
    repository = ScheduleRepository(ScheduleCache())

    schedule = await repository.get_schedule(db, provider_id, 1)
    assert schedule.start_time == "09:00"
    assert schedule.has_break

    row = (await db.execute(select(Schedule).where(Schedule.provider_id == provider_id))).scalar_one()
    row.start_time = "10:00"
    await db.commit()

    # Stale until the edit workflow invalidates
    assert (await repository.get_schedule(db, provider_id, 1)).start_time == "09:00"
    repository.invalidate(provider_id)
    assert (await repository.get_schedule(db, provider_id, 1)).start_time == "10:00"


@pytest.mark.asyncio
async def test_missing_schedule_is_none_and_not_cached(db, make_provider):
    seeded = await make_provider()
    cache = ScheduleCache()
    repository = ScheduleRepository(cache)

    assert await repository.get_schedule(db, seeded["provider_id"], 0) is None
    assert cache.size() == 0


@pytest.mark.asyncio
async def test_active_staff_excludes_inactive_in_creation_order(db, make_provider):
    seeded = await make_provider(staff_names=("Asha", "Bela", "Chitra"))
    provider_id = seeded["provider_id"]

    member = await db.get(StaffMember, seeded["staff_ids"][1])
    member.is_active = False
    await db.commit()

    repository = ScheduleRepository(ScheduleCache())
    staff = await repository.get_active_staff(db, provider_id)
    assert [m.name for m in staff] == ["Asha", "Chitra"]


@pytest.mark.asyncio
async def test_timezone_falls_back_to_default(db):
    repository = ScheduleRepository(ScheduleCache())
    assert await repository.get_timezone(db, uuid.uuid4()) == "Asia/Kolkata"
