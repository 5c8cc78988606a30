from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from ...enum.tenancy_enum import ApplicationStatus, ReviewDecision


class EmploymentInfo(BaseModel):
    employer: str = Field(min_length=1)
    position: str = Field(min_length=1)
    monthly_income: Decimal = Field(ge=0)
    employment_length: int = Field(ge=0)  # months


class PreviousRental(BaseModel):
    address: Optional[str] = None
    landlord_name: Optional[str] = None
    landlord_contact: Optional[str] = None
    rental_duration: Optional[int] = Field(default=None, ge=0)  # months


class Reference(BaseModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    contact: Optional[str] = None


class RentalApplicationCreate(BaseModel):
    property_id: UUID
    move_in_date: date
    lease_term: int = Field(ge=1)  # months
    employment_info: EmploymentInfo
    credit_score: Optional[int] = Field(default=None, ge=300, le=850)
    previous_rentals: List[PreviousRental] = []
    references: List[Reference] = []
    additional_notes: Optional[str] = None


class ReviewApplicationRequest(BaseModel):
    application_id: UUID
    status: ReviewDecision
    rejection_reason: Optional[str] = None


class RentalApplicationOut(BaseModel):
    id: UUID
    property_id: UUID
    tenant_id: str
    move_in_date: date
    lease_term: int
    employment_info: EmploymentInfo
    credit_score: Optional[int] = None
    previous_rentals: List[PreviousRental] = []
    references: List[Reference] = []
    additional_notes: Optional[str] = None
    status: ApplicationStatus
    reviewed_by: Optional[str] = None
    reviewed_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}

    @model_validator(mode="before")
    @classmethod
    def nest_employment_info(cls, values):
        # ORM rows keep employment info flat
        if not isinstance(values, dict) and hasattr(values, "employer"):
            return {
                **{field: getattr(values, field) for field in (
                    "id", "property_id", "tenant_id", "move_in_date", "lease_term",
                    "credit_score", "additional_notes", "status", "reviewed_by",
                    "reviewed_at", "rejection_reason", "created_at", "updated_at")},
                "previous_rentals": values.previous_rentals or [],
                "references": values.references or [],
                "employment_info": {
                    "employer": values.employer,
                    "position": values.position,
                    "monthly_income": values.monthly_income,
                    "employment_length": values.employment_length,
                },
            }
        return values


class RentalApplicationListResponse(BaseModel):
    applications: List[RentalApplicationOut]
    total: int
