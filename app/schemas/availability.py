"""Pydantic schemas for availability queries."""

from datetime import date
from typing import Optional
from uuid import UUID
from pydantic import BaseModel


class AvailableSlot(BaseModel):
    """Discrete grid slot (Mode A)."""
    start_time: str  # "09:00"
    end_time: str  # "09:30"
    date: date
    staff_member_id: Optional[UUID] = None
    staff_member_name: Optional[str] = None
    max_capacity: int
    current_bookings: int
    available_spots: int
    duration: int  # minutes


class AvailableWindow(BaseModel):
    """Continuous free window on one staff timeline (Mode B)."""
    start_time: str
    end_time: str
    staff_id: Optional[UUID] = None
    staff_name: Optional[str] = None
    can_fit_service: bool
    next_available_start: Optional[str] = None


class StaffAvailability(BaseModel):
    staff_id: Optional[UUID] = None  # None = provider-level timeline (no active staff)
    staff_name: Optional[str] = None
    available_windows: list[AvailableWindow]


class SlotCheckResult(BaseModel):
    available: bool
    conflict_reason: Optional[str] = None


class AvailableSlotsResponse(BaseModel):
    provider_id: UUID
    date: date
    slots: list[AvailableSlot]


class AvailableWindowsResponse(BaseModel):
    provider_id: UUID
    date: date
    staff: list[StaffAvailability]


class AvailabilityRangeResponse(BaseModel):
    provider_id: UUID
    start_date: date
    end_date: date
    days: dict[date, list[AvailableSlot]]
