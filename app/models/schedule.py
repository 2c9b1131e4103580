"""Weekly working-hours model: one row per (provider, day of week)."""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
from app.core.config import settings
from app.core.database import Base


class Schedule(Base):
    __tablename__ = "schedules"
    __table_args__ = (
        UniqueConstraint("provider_id", "day_of_week", name="uq_schedules_provider_day"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id"), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)  # 0-6, Sunday = 0
    start_time = Column(String, nullable=False)  # "09:00"
    end_time = Column(String, nullable=False)  # "18:00"
    break_start_time = Column(String, nullable=True)  # "13:00"
    break_end_time = Column(String, nullable=True)  # "14:00"
    is_available = Column(Boolean, default=True, nullable=False)  # False = closed / holiday
    max_slots = Column(Integer, default=1, nullable=False)
    timezone = Column(String, nullable=False, default=lambda: settings.DEFAULT_PROVIDER_TIMEZONE)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    provider = relationship("Provider", back_populates="schedules")
