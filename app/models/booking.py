"""Booking model: the central scheduling entity."""

from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey, Text, Index, Enum as SQLEnum
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship
import uuid
from datetime import datetime
import enum
from app.core.database import Base


class BookingStatus(str, enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class Booking(Base):
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_provider_appointment", "provider_id", "appointment_date"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    client_id = Column(UUID(as_uuid=True), nullable=False, index=True)  # users live outside this service
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id"), nullable=False)
    staff_member_id = Column(UUID(as_uuid=True), ForeignKey("staff_members.id"), nullable=True, index=True)
    service_id = Column(UUID(as_uuid=True), ForeignKey("services.id"), nullable=True)  # legacy
    global_service_id = Column(UUID(as_uuid=True), ForeignKey("global_services.id"), nullable=True)

    # Naive UTC. End is start + service duration, never buffered.
    appointment_date = Column(DateTime, nullable=False)
    appointment_end_time = Column(DateTime, nullable=True)  # null only on legacy rows

    status = Column(
        SQLEnum(
            BookingStatus,
            name="booking_status_enum",
            values_callable=lambda statuses: [s.value for s in statuses],
        ),
        default=BookingStatus.PENDING,
        nullable=False,
        index=True,
    )

    service_price = Column(Numeric(10, 2), nullable=True)  # goes to provider
    platform_fee = Column(Numeric(10, 2), nullable=True)
    total_price = Column(Numeric(10, 2), nullable=False)  # service_price + platform_fee

    token_number = Column(String, nullable=False, unique=True, index=True)
    notes = Column(Text, nullable=True)
    payment_method = Column(String, default="cash")  # cash, online
    client_name = Column(String, nullable=True)
    client_phone = Column(String, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    provider = relationship("Provider")
    staff_member = relationship("StaffMember")
