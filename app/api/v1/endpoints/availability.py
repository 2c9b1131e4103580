"""Availability endpoints: slot grid, free windows, date range and single-slot check."""

from datetime import date
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.http_errors import as_http_exception
from app.core.database import get_db
from app.core.dependencies import get_availability_calculator
from app.core.errors import SchedulingError
from app.schemas.availability import (
    AvailabilityRangeResponse,
    AvailableSlotsResponse,
    AvailableWindowsResponse,
    SlotCheckResult,
)
from app.services.availability import AvailabilityCalculator

router = APIRouter()


@router.get("/providers/{provider_id}/slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    provider_id: UUID,
    date: date = Query(...),
    duration: Optional[int] = Query(None, gt=0),
    slot_duration: Optional[int] = Query(None, gt=0),
    buffer: Optional[int] = Query(None, ge=0),
    include_past: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    calculator: AvailabilityCalculator = Depends(get_availability_calculator),
):
    """Discrete bookable slots for one day, each with its first free staff member."""
    try:
        slots = await calculator.generate_available_slots(
            db,
            provider_id,
            date,
            service_duration=duration,
            slot_duration=slot_duration,
            buffer_time=buffer,
            include_past_slots=include_past,
        )
    except SchedulingError as e:
        raise as_http_exception(e)
    return AvailableSlotsResponse(provider_id=provider_id, date=date, slots=slots)


@router.get("/providers/{provider_id}/windows", response_model=AvailableWindowsResponse)
async def get_available_windows(
    provider_id: UUID,
    date: date = Query(...),
    duration: int = Query(..., gt=0),
    buffer: Optional[int] = Query(None, ge=0),
    db: AsyncSession = Depends(get_db),
    calculator: AvailabilityCalculator = Depends(get_availability_calculator),
):
    """Continuous free windows per staff member that fit the service."""
    try:
        staff = await calculator.calculate_flexible_availability(
            db, provider_id, date, duration, buffer_minutes=buffer
        )
    except SchedulingError as e:
        raise as_http_exception(e)
    return AvailableWindowsResponse(provider_id=provider_id, date=date, staff=staff)


@router.get("/providers/{provider_id}/range", response_model=AvailabilityRangeResponse)
async def get_availability_range(
    provider_id: UUID,
    start_date: date = Query(...),
    end_date: date = Query(...),
    duration: Optional[int] = Query(None, gt=0),
    db: AsyncSession = Depends(get_db),
    calculator: AvailabilityCalculator = Depends(get_availability_calculator),
):
    try:
        days = await calculator.generate_available_slots_for_range(
            db, provider_id, start_date, end_date, service_duration=duration
        )
    except SchedulingError as e:
        raise as_http_exception(e)
    return AvailabilityRangeResponse(
        provider_id=provider_id, start_date=start_date, end_date=end_date, days=days
    )


@router.get("/providers/{provider_id}/check", response_model=SlotCheckResult)
async def check_slot(
    provider_id: UUID,
    date: date = Query(...),
    start_time: str = Query(..., description="Provider-local HH:MM"),
    duration: int = Query(..., gt=0),
    staff_member_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    calculator: AvailabilityCalculator = Depends(get_availability_calculator),
):
    """Read-only: would a booking at this start time be accepted right now?"""
    try:
        return await calculator.check_slot_availability(
            db, provider_id, date, start_time, duration, staff_member_id=staff_member_id
        )
    except SchedulingError as e:
        raise as_http_exception(e)
