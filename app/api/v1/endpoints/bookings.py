"""Booking intake, listing and status transitions."""

from datetime import date, datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID
from fastapi import APIRouter, Depends, HTTPException, Query, Response
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from app.api.v1.http_errors import STATUS_BY_KIND, as_http_exception
from app.core.database import get_db
from app.core.dependencies import get_booking_service, get_schedule_repository
from app.core.errors import SchedulingError
from app.models.booking import Booking, BookingStatus
from app.schemas.booking import BookingCreate, BookingOut, BookingRequest, BookingResult
from app.services.booking_service import BookingService, generate_token_number
from app.services.schedule_repository import ScheduleRepository
from app.services.service_catalog import resolve_service
from app.utils.time_utils import local_day_bounds
import logging

router = APIRouter()
logger = logging.getLogger(__name__)


async def _resolve_request(
    db: AsyncSession, booking: BookingCreate
) -> BookingRequest:
    """Fill in duration, prices and token from the service catalog where missing."""
    data = booking.model_dump()
    duration = booking.service_duration
    service_price = booking.service_price

    service_ref = booking.global_service_id or booking.service_id
    if service_ref is not None:
        service = await resolve_service(db, service_ref, booking.provider_id)
        duration = duration or service.duration
        service_price = service.price if service_price is None else service_price
        # Only legacy and global ids have a column to land in
        data["service_id"] = service.id if service.type == "legacy" else None
        data["global_service_id"] = service.id if service.type == "global" else None

    total_price = booking.total_price
    if total_price is None:
        if service_price is None:
            raise HTTPException(status_code=400, detail="total_price or a priced service is required")
        total_price = service_price + (booking.platform_fee or Decimal("0"))

    data.update(
        service_duration=duration,
        service_price=service_price,
        total_price=total_price,
        token_number=booking.token_number or generate_token_number(),
    )
    return BookingRequest(**data)


@router.post("/", response_model=BookingResult, status_code=201)
async def create_booking(
    booking: BookingCreate,
    response: Response,
    db: AsyncSession = Depends(get_db),
    repository: ScheduleRepository = Depends(get_schedule_repository),
    bookings: BookingService = Depends(get_booking_service),
):
    """Atomically book a slot. Never double-books; failures carry a typed error kind."""
    provider = await repository.get_provider(db, booking.provider_id)
    if not provider:
        raise HTTPException(status_code=404, detail="Provider not found")

    try:
        request = await _resolve_request(db, booking)
    except SchedulingError as e:
        raise as_http_exception(e)
    # Release the read connection before the creator opens its own transaction
    await db.close()

    result = await bookings.create_booking(request)
    if not result.success:
        raise HTTPException(status_code=STATUS_BY_KIND[result.error_kind], detail=result.error)

    if result.replayed:
        response.status_code = 200
    return result


@router.get("/", response_model=list[BookingOut])
async def list_bookings(
    provider_id: UUID = Query(...),
    date: Optional[date] = Query(None, description="Provider-local calendar day"),
    staff_member_id: Optional[UUID] = Query(None),
    include_cancelled: bool = Query(False),
    db: AsyncSession = Depends(get_db),
    repository: ScheduleRepository = Depends(get_schedule_repository),
):
    """List a provider's bookings, optionally for one local day or one staff member."""
    query = select(Booking).where(Booking.provider_id == provider_id)

    if date:
        tz_name = await repository.get_timezone(db, provider_id)
        day_start, day_end = local_day_bounds(date, tz_name)
        query = query.where(
            and_(Booking.appointment_date >= day_start, Booking.appointment_date < day_end)
        )
    if staff_member_id:
        query = query.where(Booking.staff_member_id == staff_member_id)
    if not include_cancelled:
        query = query.where(Booking.status != BookingStatus.CANCELLED)

    query = query.order_by(Booking.appointment_date)

    result = await db.execute(query)
    return result.scalars().all()


async def _get_booking(db: AsyncSession, booking_id: UUID) -> Booking:
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()

    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


async def _set_status(db: AsyncSession, booking: Booking, status: BookingStatus) -> Booking:
    booking.status = status
    booking.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(booking)
    logger.info("Booking %s -> %s", booking.token_number, status.value)
    return booking


@router.put("/{booking_id}/confirm", response_model=BookingOut)
async def confirm_booking(
    booking_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Provider accepts a pending booking."""
    booking = await _get_booking(db, booking_id)

    if booking.status == BookingStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Cancelled bookings cannot be confirmed")
    if booking.status != BookingStatus.PENDING:
        raise HTTPException(status_code=400, detail=f"Booking already {booking.status.value}")

    return await _set_status(db, booking, BookingStatus.CONFIRMED)


@router.put("/{booking_id}/complete", response_model=BookingOut)
async def complete_booking(
    booking_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Mark a booking as completed."""
    booking = await _get_booking(db, booking_id)

    if booking.status == BookingStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Cancelled bookings cannot be completed")
    if booking.status == BookingStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="Booking already completed")

    return await _set_status(db, booking, BookingStatus.COMPLETED)


@router.put("/{booking_id}/cancel", response_model=BookingOut)
async def cancel_booking(
    booking_id: UUID,
    db: AsyncSession = Depends(get_db),
):
    """Cancel a booking; its interval becomes bookable again."""
    booking = await _get_booking(db, booking_id)

    if booking.status == BookingStatus.CANCELLED:
        raise HTTPException(status_code=400, detail="Booking already cancelled")
    if booking.status == BookingStatus.COMPLETED:
        raise HTTPException(status_code=400, detail="Completed bookings cannot be cancelled")

    return await _set_status(db, booking, BookingStatus.CANCELLED)
