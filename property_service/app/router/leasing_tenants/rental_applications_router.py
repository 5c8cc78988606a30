from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from shared.core.database import get_property_db as get_db
from shared.core.schemas import UserToken

from ...core.permissions import Operation, require_capability
from ...crud.leasing_tenants import rental_applications_crud as crud
from ...schemas.leasing_tenants.rental_applications_schemas import (
    RentalApplicationCreate, RentalApplicationListResponse, RentalApplicationOut, ReviewApplicationRequest
)

router = APIRouter(
    prefix="/api/applications",
    tags=["applications"],
)


@router.post("/", response_model=RentalApplicationOut)
def submit_application(
    payload: RentalApplicationCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.application_submit))
):
    return crud.submit(db, payload, current_user)


@router.get("/property/{property_id}", response_model=RentalApplicationListResponse)
def get_property_applications(
    property_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.application_list_by_property))
):
    return crud.get_by_property(db, property_id, current_user)


@router.get("/tenant/{tenant_id}", response_model=RentalApplicationListResponse)
def get_tenant_applications(
    tenant_id: str,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.application_list_by_tenant))
):
    return crud.get_by_tenant(db, tenant_id, current_user)


@router.put("/review", response_model=RentalApplicationOut)
def review_application(
    payload: ReviewApplicationRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.application_review))
):
    return crud.review(db, payload, current_user, idempotency_key)


@router.put("/cancel/{application_id}", response_model=RentalApplicationOut)
def cancel_application(
    application_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.application_cancel))
):
    return crud.cancel(db, application_id, current_user)


@router.get("/{application_id}", response_model=RentalApplicationOut)
def get_application(
    application_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.application_read))
):
    return crud.get_by_id(db, application_id, current_user)
