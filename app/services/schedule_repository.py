"""Read-through access to provider schedules and staff rosters.

Schedules and rosters change rarely, so reads go through the injected
ScheduleCache. Anything that edits a schedule or roster must call
`invalidate(provider_id)`; otherwise readers may see stale data for up to one
TTL. Booking creation bypasses the cache with the live readers.
"""

import logging
from datetime import datetime
from typing import Optional
from uuid import UUID
from sqlalchemy import select, and_
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.models.provider import Provider
from app.models.schedule import Schedule
from app.models.staff_member import StaffMember
from app.schemas.schedule import ScheduleOut, StaffMemberOut
from app.services.schedule_cache import ScheduleCache, schedule_key, staff_key
from app.utils.time_utils import day_of_week, to_local_date

logger = logging.getLogger(__name__)


class ScheduleRepository:

    def __init__(self, cache: ScheduleCache):
        self.cache = cache

    async def get_provider(self, db: AsyncSession, provider_id: UUID) -> Optional[Provider]:
        result = await db.execute(select(Provider).where(Provider.id == provider_id))
        return result.scalar_one_or_none()

    async def get_schedule(
        self, db: AsyncSession, provider_id: UUID, day_of_week: int
    ) -> Optional[ScheduleOut]:
        """Schedule for one weekday, or None when no row exists."""
        key = schedule_key(provider_id, day_of_week)
        cached = self.cache.get(key)
        if cached is not None:
            return cached

        schedule = await self.get_schedule_live(db, provider_id, day_of_week)
        self.cache.set(key, schedule)
        return schedule

    async def get_schedule_live(
        self, db: AsyncSession, provider_id: UUID, day_of_week: int
    ) -> Optional[ScheduleOut]:
        result = await db.execute(
            select(Schedule).where(
                and_(
                    Schedule.provider_id == provider_id,
                    Schedule.day_of_week == day_of_week,
                )
            )
        )
        row = result.scalar_one_or_none()
        return ScheduleOut.model_validate(row) if row else None

    async def get_schedule_at_live(
        self, db: AsyncSession, provider_id: UUID, moment: datetime
    ) -> Optional[ScheduleOut]:
        """Uncached schedule row for the provider-local weekday of `moment`.

        All of a provider's rows share one timezone, so any row tells us how
        to map a UTC timestamp onto a local weekday.
        """
        result = await db.execute(select(Schedule).where(Schedule.provider_id == provider_id))
        rows = [ScheduleOut.model_validate(row) for row in result.scalars().all()]
        if not rows:
            return None
        local_day = day_of_week(to_local_date(moment, rows[0].timezone))
        return next((row for row in rows if row.day_of_week == local_day), None)

    async def get_timezone(self, db: AsyncSession, provider_id: UUID) -> str:
        """The provider's timezone, or the platform default before any schedule exists."""
        result = await db.execute(
            select(Schedule.timezone).where(Schedule.provider_id == provider_id).limit(1)
        )
        return result.scalar_one_or_none() or settings.DEFAULT_PROVIDER_TIMEZONE

    async def get_active_staff(self, db: AsyncSession, provider_id: UUID) -> list[StaffMemberOut]:
        """Active staff in creation order (stable first-free assignment)."""
        key = staff_key(provider_id)
        cached = self.cache.get(key)
        if cached is not None:
            return list(cached)

        result = await db.execute(
            select(StaffMember)
            .where(
                and_(
                    StaffMember.provider_id == provider_id,
                    StaffMember.is_active.is_(True),
                )
            )
            .order_by(StaffMember.created_at, StaffMember.name)
        )
        staff = tuple(StaffMemberOut.model_validate(row) for row in result.scalars().all())
        self.cache.set(key, staff)
        return list(staff)

    def invalidate(self, provider_id: UUID) -> None:
        self.cache.invalidate_provider(provider_id)
