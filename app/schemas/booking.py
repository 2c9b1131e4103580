"""Pydantic schemas for booking intake and results."""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional
from uuid import UUID
from pydantic import BaseModel, Field, model_validator

from app.core.errors import BookingErrorKind
from app.models.booking import BookingStatus


class ServiceInfo(BaseModel):
    """Uniform view of a service regardless of which catalog it lives in."""
    id: UUID
    name: str
    duration: int  # minutes
    price: Decimal
    type: Literal["legacy", "global", "provider"]


class BookingCreate(BaseModel):
    """Booking request as received from the intake handler.

    Either `service_duration` or a service reference must be present; the
    handler resolves the reference before calling the booking creator.
    """
    client_id: UUID
    provider_id: UUID
    staff_member_id: Optional[UUID] = None
    appointment_date: datetime
    service_duration: Optional[int] = Field(None, gt=0, le=24 * 60)
    service_id: Optional[UUID] = None
    global_service_id: Optional[UUID] = None
    service_price: Optional[Decimal] = None
    platform_fee: Optional[Decimal] = None
    total_price: Optional[Decimal] = None
    token_number: Optional[str] = Field(None, min_length=1, max_length=64)
    notes: Optional[str] = None
    payment_method: str = "cash"
    client_name: Optional[str] = None
    client_phone: Optional[str] = None

    @model_validator(mode="after")
    def check_duration_source(self):
        if self.service_duration is None and not (self.service_id or self.global_service_id):
            raise ValueError("service_duration or a service reference is required")
        return self


class BookingRequest(BaseModel):
    """Fully resolved request consumed by the atomic booking creator."""
    client_id: UUID
    provider_id: UUID
    staff_member_id: Optional[UUID] = None
    appointment_date: datetime
    service_duration: int = Field(..., gt=0)
    total_price: Decimal
    token_number: str
    service_price: Optional[Decimal] = None
    platform_fee: Optional[Decimal] = None
    service_id: Optional[UUID] = None
    global_service_id: Optional[UUID] = None
    notes: Optional[str] = None
    payment_method: str = "cash"
    client_name: Optional[str] = None
    client_phone: Optional[str] = None


class BookingOut(BaseModel):
    id: UUID
    client_id: UUID
    provider_id: UUID
    staff_member_id: Optional[UUID] = None
    service_id: Optional[UUID] = None
    global_service_id: Optional[UUID] = None
    appointment_date: datetime
    appointment_end_time: Optional[datetime] = None
    status: BookingStatus
    service_price: Optional[Decimal] = None
    platform_fee: Optional[Decimal] = None
    total_price: Decimal
    token_number: str
    notes: Optional[str] = None
    payment_method: Optional[str] = None
    client_name: Optional[str] = None
    client_phone: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookingResult(BaseModel):
    """Outcome of one create_booking call: a booking or a typed failure."""
    success: bool
    booking: Optional[BookingOut] = None
    error: Optional[str] = None
    error_kind: Optional[BookingErrorKind] = None
    conflicting_token: Optional[str] = None
    attempts: int = 0
    replayed: bool = False
