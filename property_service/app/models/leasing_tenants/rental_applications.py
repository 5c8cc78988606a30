import uuid
from sqlalchemy import Column, Date, DateTime, Enum, Index, Integer, JSON, Numeric, String, Text, text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from shared.core.database import Base
from ...enum.tenancy_enum import ApplicationStatus


class RentalApplication(Base):
    __tablename__ = "rental_applications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # no FK: referential integrity is checked by the adjudicator at write time
    property_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)

    move_in_date = Column(Date, nullable=False)
    lease_term = Column(Integer, nullable=False)  # months

    # employment info
    employer = Column(String(200), nullable=False)
    position = Column(String(200), nullable=False)
    monthly_income = Column(Numeric(14, 2), nullable=False)
    employment_length = Column(Integer, nullable=False)  # months

    credit_score = Column(Integer, nullable=True)
    previous_rentals = Column(JSON, default=list)
    references = Column(JSON, default=list)
    additional_notes = Column(Text, nullable=True)

    status = Column(Enum(ApplicationStatus, name="application_status"),
                    nullable=False, default=ApplicationStatus.pending)
    # pending | approved | rejected | canceled

    reviewed_by = Column(String(64), nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    rejection_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        # at most one pending application per (property, tenant)
        Index(
            "uq_rental_applications_pending_tenant_property",
            "property_id",
            "tenant_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )
