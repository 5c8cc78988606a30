from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from ...enum.tenancy_enum import RenewalResponse, RenewalStatus, TerminationRequester


class LeaseDocument(BaseModel):
    title: Optional[str] = None
    url: Optional[str] = None
    uploaded_at: Optional[datetime] = None


class LeaseBase(BaseModel):
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    rent_amount: Optional[Decimal] = Field(default=None, ge=0)
    security_deposit: Optional[Decimal] = Field(default=None, ge=0)
    payment_due_day: Optional[int] = Field(default=None, ge=1, le=31)
    late_fees_applicable: Optional[bool] = None
    late_fee_amount: Optional[Decimal] = Field(default=None, ge=0)
    late_fee_applicable_after_days: Optional[int] = Field(default=None, ge=0)
    documents: Optional[List[LeaseDocument]] = None
    special_terms: Optional[str] = None


class LeaseCreate(LeaseBase):
    property_id: UUID
    tenant_id: str = Field(min_length=1)
    application_id: Optional[UUID] = None
    start_date: date
    end_date: date
    rent_amount: Decimal = Field(ge=0)
    security_deposit: Decimal = Field(ge=0)
    payment_due_day: int = Field(default=1, ge=1, le=31)

    @model_validator(mode="after")
    def check_term(self):
        if self.end_date <= self.start_date:
            raise ValueError("end_date must be after start_date")
        return self


class LeaseUpdate(LeaseBase):
    manager_id: Optional[str] = None
    # accepted for payload compatibility but never applied
    property_id: Optional[UUID] = None
    tenant_id: Optional[str] = None
    owner_id: Optional[str] = None


class TerminateLeaseRequest(BaseModel):
    lease_id: UUID
    reason: str = Field(min_length=1)
    move_out_date: Optional[date] = None


class ApproveTerminationRequest(BaseModel):
    lease_id: UUID


class OfferRenewalRequest(BaseModel):
    lease_id: UUID
    new_rent_amount: Decimal = Field(ge=0)
    new_term_length: int = Field(ge=1)  # months


class RespondRenewalRequest(BaseModel):
    lease_id: UUID
    response: RenewalResponse


class TerminationDetails(BaseModel):
    requested_by: Optional[TerminationRequester] = None
    request_date: Optional[datetime] = None
    reason: Optional[str] = None
    approved_by: Optional[str] = None
    approved_date: Optional[datetime] = None
    move_out_date: Optional[date] = None


class RenewalDetails(BaseModel):
    offered_at: Optional[datetime] = None
    new_rent_amount: Optional[Decimal] = None
    new_term_length: Optional[int] = None
    status: Optional[RenewalStatus] = None
    response_date: Optional[datetime] = None


class LeaseOut(BaseModel):
    id: UUID
    property_id: UUID
    tenant_id: str
    owner_id: str
    manager_id: Optional[str] = None
    application_id: Optional[UUID] = None
    renewed_from_id: Optional[UUID] = None
    start_date: date
    end_date: date
    rent_amount: Decimal
    security_deposit: Decimal
    payment_due_day: int
    late_fees_applicable: bool
    late_fee_amount: Decimal
    late_fee_applicable_after_days: int
    documents: Optional[List[LeaseDocument]] = []
    special_terms: Optional[str] = None
    is_active: bool
    termination_requested: bool
    termination_details: Optional[TerminationDetails] = None
    renewal_offered: bool
    renewal_details: Optional[RenewalDetails] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RenewalResult(BaseModel):
    lease: LeaseOut
    renewed_lease: Optional[LeaseOut] = None


class LeaseListResponse(BaseModel):
    leases: List[LeaseOut]
    total: int
