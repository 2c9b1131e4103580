"""Provider working hours and staff roster management.

Every write here invalidates the provider's cached schedules and roster.
"""

from datetime import datetime
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Path
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, update
from app.core.database import get_db
from app.core.dependencies import get_schedule_repository
from app.models.schedule import Schedule
from app.models.staff_member import StaffMember
from app.schemas.schedule import ScheduleOut, ScheduleUpdate, StaffMemberCreate, StaffMemberOut
from app.services.schedule_repository import ScheduleRepository
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


async def _require_provider(db: AsyncSession, repository: ScheduleRepository, provider_id: UUID) -> None:
    if not await repository.get_provider(db, provider_id):
        raise HTTPException(status_code=404, detail="Provider not found")


@router.get("/providers/{provider_id}/schedules", response_model=list[ScheduleOut])
async def list_schedules(
    provider_id: UUID,
    db: AsyncSession = Depends(get_db),
    repository: ScheduleRepository = Depends(get_schedule_repository),
):
    await _require_provider(db, repository, provider_id)
    result = await db.execute(
        select(Schedule).where(Schedule.provider_id == provider_id).order_by(Schedule.day_of_week)
    )
    return result.scalars().all()


@router.put("/providers/{provider_id}/schedules/{day_of_week}", response_model=ScheduleOut)
async def upsert_schedule(
    provider_id: UUID,
    config: ScheduleUpdate,
    day_of_week: int = Path(..., ge=0, le=6, description="0 = Sunday"),
    db: AsyncSession = Depends(get_db),
    repository: ScheduleRepository = Depends(get_schedule_repository),
):
    """Create or replace the working hours for one weekday.

    A timezone change applies to every schedule row of the provider.
    """
    await _require_provider(db, repository, provider_id)

    result = await db.execute(
        select(Schedule).where(
            and_(Schedule.provider_id == provider_id, Schedule.day_of_week == day_of_week)
        )
    )
    schedule = result.scalar_one_or_none()

    update_data = config.model_dump(exclude={"timezone"})
    tz_name = config.timezone or await repository.get_timezone(db, provider_id)

    if schedule is None:
        schedule = Schedule(provider_id=provider_id, day_of_week=day_of_week, **update_data)
        db.add(schedule)
    else:
        for key, value in update_data.items():
            setattr(schedule, key, value)
        schedule.updated_at = datetime.utcnow()
    schedule.timezone = tz_name

    if config.timezone:
        await db.execute(
            update(Schedule)
            .where(and_(Schedule.provider_id == provider_id, Schedule.timezone != tz_name))
            .values(timezone=tz_name, updated_at=datetime.utcnow())
        )

    await db.commit()
    await db.refresh(schedule)
    repository.invalidate(provider_id)

    logger.info("Schedule for provider %s day %d updated", provider_id, day_of_week)
    return schedule


@router.get("/providers/{provider_id}/staff", response_model=list[StaffMemberOut])
async def list_staff(
    provider_id: UUID,
    db: AsyncSession = Depends(get_db),
    repository: ScheduleRepository = Depends(get_schedule_repository),
):
    """Active staff in booking-assignment order."""
    await _require_provider(db, repository, provider_id)
    return await repository.get_active_staff(db, provider_id)


@router.post("/providers/{provider_id}/staff", response_model=StaffMemberOut, status_code=201)
async def add_staff_member(
    provider_id: UUID,
    staff: StaffMemberCreate,
    db: AsyncSession = Depends(get_db),
    repository: ScheduleRepository = Depends(get_schedule_repository),
):
    await _require_provider(db, repository, provider_id)

    member = StaffMember(provider_id=provider_id, name=staff.name)
    db.add(member)
    await db.commit()
    await db.refresh(member)
    repository.invalidate(provider_id)

    logger.info("Staff member %s added to provider %s", member.id, provider_id)
    return member


@router.put("/providers/{provider_id}/staff/{staff_id}/deactivate", response_model=StaffMemberOut)
async def deactivate_staff_member(
    provider_id: UUID,
    staff_id: UUID,
    db: AsyncSession = Depends(get_db),
    repository: ScheduleRepository = Depends(get_schedule_repository),
):
    """Deactivate a staff member. Existing bookings keep their assignment."""
    result = await db.execute(
        select(StaffMember).where(
            and_(StaffMember.id == staff_id, StaffMember.provider_id == provider_id)
        )
    )
    member = result.scalar_one_or_none()

    if not member:
        raise HTTPException(status_code=404, detail="Staff member not found")

    if not member.is_active:
        raise HTTPException(status_code=400, detail="Staff member already inactive")

    member.is_active = False
    member.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(member)
    repository.invalidate(provider_id)

    return member
