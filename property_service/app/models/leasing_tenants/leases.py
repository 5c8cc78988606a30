import uuid
from sqlalchemy import (
    Boolean, Column, Date, DateTime, Enum, Index, Integer, JSON, Numeric, String, Text, text
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.sql import func

from shared.core.database import Base
from ...enum.tenancy_enum import RenewalStatus, TerminationRequester


class Lease(Base):
    __tablename__ = "leases"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    property_id = Column(UUID(as_uuid=True), nullable=False, index=True)
    tenant_id = Column(String(64), nullable=False, index=True)
    application_id = Column(UUID(as_uuid=True), nullable=True)
    renewed_from_id = Column(UUID(as_uuid=True), nullable=True)

    # snapshot of the property's owner/manager at creation time, not a live reference
    owner_id = Column(String(64), nullable=False)
    manager_id = Column(String(64), nullable=True)

    start_date = Column(Date, nullable=False)
    end_date = Column(Date, nullable=False)

    rent_amount = Column(Numeric(14, 2), nullable=False)
    security_deposit = Column(Numeric(14, 2), nullable=False)
    payment_due_day = Column(Integer, nullable=False, default=1)
    late_fees_applicable = Column(Boolean, nullable=False, default=True)
    late_fee_amount = Column(Numeric(14, 2), nullable=False, default=0)
    late_fee_applicable_after_days = Column(Integer, nullable=False, default=5)

    documents = Column(JSON, default=list)  # [{"title", "url", "uploaded_at"}]
    special_terms = Column(Text, nullable=True)

    is_active = Column(Boolean, nullable=False, default=True)

    # termination sub-flow
    termination_requested = Column(Boolean, nullable=False, default=False)
    termination_requested_by = Column(
        Enum(TerminationRequester, name="termination_requester"), nullable=True)
    termination_request_date = Column(DateTime(timezone=True), nullable=True)
    termination_reason = Column(Text, nullable=True)
    termination_approved_by = Column(String(64), nullable=True)
    termination_approved_date = Column(DateTime(timezone=True), nullable=True)
    move_out_date = Column(Date, nullable=True)

    # renewal sub-flow
    renewal_offered = Column(Boolean, nullable=False, default=False)
    renewal_offered_at = Column(DateTime(timezone=True), nullable=True)
    renewal_new_rent_amount = Column(Numeric(14, 2), nullable=True)
    renewal_new_term_length = Column(Integer, nullable=True)  # months
    renewal_status = Column(
        Enum(RenewalStatus, name="renewal_status"), nullable=True)
    renewal_response_date = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(DateTime(timezone=True),
                        server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    __table_args__ = (
        # at most one active lease per property
        Index(
            "uq_leases_active_property",
            "property_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
    )

    @property
    def termination_details(self):
        if not self.termination_requested:
            return None
        return {
            "requested_by": self.termination_requested_by,
            "request_date": self.termination_request_date,
            "reason": self.termination_reason,
            "approved_by": self.termination_approved_by,
            "approved_date": self.termination_approved_date,
            "move_out_date": self.move_out_date,
        }

    @property
    def renewal_details(self):
        if not self.renewal_offered:
            return None
        return {
            "offered_at": self.renewal_offered_at,
            "new_rent_amount": self.renewal_new_rent_amount,
            "new_term_length": self.renewal_new_term_length,
            "status": self.renewal_status,
            "response_date": self.renewal_response_date,
        }
