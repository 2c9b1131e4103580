"""Pydantic schemas for provider schedules and staff rosters.

`ScheduleOut` and `StaffMemberOut` double as the immutable snapshots held by
the schedule cache, so cached values never carry a live ORM session.
"""

from datetime import datetime
from typing import Optional
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from pydantic import BaseModel, Field, field_validator, model_validator

from app.utils.time_utils import time_to_minutes

CLOCK_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class ScheduleUpdate(BaseModel):
    """Provider-edited working hours for one weekday."""
    start_time: str = Field(..., pattern=CLOCK_PATTERN)
    end_time: str = Field(..., pattern=CLOCK_PATTERN)
    break_start_time: Optional[str] = Field(None, pattern=CLOCK_PATTERN)
    break_end_time: Optional[str] = Field(None, pattern=CLOCK_PATTERN)
    is_available: bool = True
    max_slots: int = Field(1, ge=1)
    timezone: Optional[str] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        if v is None:
            return v
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError):
            raise ValueError(f"Unknown timezone: {v}")
        return v

    @model_validator(mode="after")
    def check_hours(self):
        start = time_to_minutes(self.start_time)
        end = time_to_minutes(self.end_time)
        if start >= end:
            raise ValueError("start_time must be before end_time")

        if (self.break_start_time is None) != (self.break_end_time is None):
            raise ValueError("break_start_time and break_end_time must be set together")
        if self.break_start_time and self.break_end_time:
            break_start = time_to_minutes(self.break_start_time)
            break_end = time_to_minutes(self.break_end_time)
            if break_start >= break_end:
                raise ValueError("break_start_time must be before break_end_time")
            if break_start < start or break_end > end:
                raise ValueError("break must lie within working hours")
        return self


class ScheduleOut(BaseModel):
    id: UUID
    provider_id: UUID
    day_of_week: int
    start_time: str
    end_time: str
    break_start_time: Optional[str] = None
    break_end_time: Optional[str] = None
    is_available: bool
    max_slots: int
    timezone: str
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True
        frozen = True

    @property
    def has_break(self) -> bool:
        return bool(self.break_start_time and self.break_end_time)


class StaffMemberCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)


class StaffMemberOut(BaseModel):
    id: UUID
    provider_id: UUID
    name: str
    is_active: bool

    class Config:
        from_attributes = True
        frozen = True
