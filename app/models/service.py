"""Service catalog models.

Three sources resolve to the same (id, name, duration, price) shape:
- services: legacy provider-specific rows
- global_services + provider_services: shared catalog with per-provider override
- provider_service_table: simple per-provider price list
"""

from sqlalchemy import Column, String, DateTime, Boolean, Integer, Numeric, ForeignKey, Text
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from app.core.database import Base


class LegacyService(Base):
    __tablename__ = "services"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)  # hair, nails, makeup, skincare
    price = Column(Numeric(10, 2), nullable=False)
    duration = Column(Integer, nullable=False)  # minutes
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class GlobalService(Base):
    __tablename__ = "global_services"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=True)
    base_price = Column(Numeric(10, 2), nullable=False)
    base_duration = Column(Integer, nullable=False)  # minutes
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class ProviderServiceOverride(Base):
    __tablename__ = "provider_services"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id"), nullable=False, index=True)
    global_service_id = Column(UUID(as_uuid=True), ForeignKey("global_services.id"), nullable=False)
    custom_price = Column(Numeric(10, 2), nullable=True)  # null = base price
    custom_duration = Column(Integer, nullable=True)  # null = base duration
    is_offered = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)


class ProviderServiceEntry(Base):
    __tablename__ = "provider_service_table"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    provider_id = Column(UUID(as_uuid=True), ForeignKey("providers.id"), nullable=False, index=True)
    service_name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    time = Column(Integer, nullable=False)  # duration in minutes
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
