import uuid
from sqlalchemy import Boolean, Column, Date, DateTime, Enum, Integer, JSON, Numeric, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from shared.core.database import Base
from ...enum.tenancy_enum import PropertyType


class Property(Base):
    __tablename__ = "properties"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)

    # address
    street = Column(String(200), nullable=False)
    city = Column(String(100), nullable=False, index=True)
    state = Column(String(100), nullable=False, index=True)
    zip_code = Column(String(20), nullable=False)
    country = Column(String(100), nullable=False, default="USA")

    property_type = Column(Enum(PropertyType, name="property_type"), nullable=False)
    bedrooms = Column(Integer, nullable=False)
    bathrooms = Column(Numeric(4, 1), nullable=False)
    square_feet = Column(Integer, nullable=False)
    rent_amount = Column(Numeric(14, 2), nullable=False)
    security_deposit = Column(Numeric(14, 2), nullable=False)
    available_date = Column(Date, nullable=False)

    amenities = Column(JSON, default=list)
    images = Column(JSON, default=list)  # [{"url": ..., "caption": ...}]

    # owner_id never changes after creation; manager_id is owner-settable only
    owner_id = Column(String(64), nullable=False, index=True)
    manager_id = Column(String(64), nullable=True, index=True)

    # only the tenancy cascades flip this (application approval, lease termination)
    is_available = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())
