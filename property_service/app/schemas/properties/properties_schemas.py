from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from shared.core.schemas import CommonQueryParams
from ...enum.tenancy_enum import PropertyType


class PropertyImage(BaseModel):
    url: str
    caption: Optional[str] = None


class AddressBase(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip_code: str = Field(min_length=1)
    country: str = "USA"


class PropertyBase(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    property_type: Optional[PropertyType] = None
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[Decimal] = Field(default=None, ge=0)
    square_feet: Optional[int] = Field(default=None, ge=0)
    rent_amount: Optional[Decimal] = Field(default=None, ge=0)
    security_deposit: Optional[Decimal] = Field(default=None, ge=0)
    available_date: Optional[date] = None
    amenities: Optional[List[str]] = None
    images: Optional[List[PropertyImage]] = None


class PropertyCreate(PropertyBase):
    title: str = Field(min_length=1)
    description: str = Field(min_length=1)
    address: AddressBase
    property_type: PropertyType
    bedrooms: int = Field(ge=0)
    bathrooms: Decimal = Field(ge=0)
    square_feet: int = Field(ge=0)
    rent_amount: Decimal = Field(ge=0)
    security_deposit: Decimal = Field(ge=0)
    available_date: date


class AddressUpdate(BaseModel):
    street: Optional[str] = Field(default=None, min_length=1)
    city: Optional[str] = Field(default=None, min_length=1)
    state: Optional[str] = Field(default=None, min_length=1)
    zip_code: Optional[str] = Field(default=None, min_length=1)
    country: Optional[str] = Field(default=None, min_length=1)


class PropertyUpdate(PropertyBase):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = Field(default=None, min_length=1)
    address: Optional[AddressUpdate] = None
    manager_id: Optional[str] = None
    # direct override; the tenancy cascades normally own this flag
    is_available: Optional[bool] = None
    # accepted for payload compatibility but ignored: owner_id never changes
    owner_id: Optional[str] = None


class AssignManagerRequest(BaseModel):
    property_id: UUID
    manager_id: str = Field(min_length=1)


class AddressOut(BaseModel):
    street: str
    city: str
    state: str
    zip_code: str
    country: str


class PropertyOut(BaseModel):
    id: UUID
    title: str
    description: str
    address: AddressOut
    property_type: PropertyType
    bedrooms: int
    bathrooms: Decimal
    square_feet: int
    rent_amount: Decimal
    security_deposit: Decimal
    available_date: date
    amenities: List[str] = []
    images: List[PropertyImage] = []
    owner_id: str
    manager_id: Optional[str] = None
    is_available: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class PropertyRequest(CommonQueryParams):
    min_rent: Optional[Decimal] = None
    max_rent: Optional[Decimal] = None
    property_type: Optional[PropertyType] = None
    bedrooms: Optional[int] = None
    city: Optional[str] = None
    state: Optional[str] = None
    is_available: Optional[bool] = None


class PropertyListResponse(BaseModel):
    properties: List[PropertyOut]
    total: int
    skip: int
    limit: int
