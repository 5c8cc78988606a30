from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Header
from sqlalchemy.orm import Session

from shared.core.database import get_property_db as get_db
from shared.core.schemas import UserToken

from ...core.permissions import Operation, require_capability
from ...crud.leasing_tenants import leases_crud as crud
from ...schemas.leasing_tenants.leases_schemas import (
    ApproveTerminationRequest, LeaseCreate, LeaseListResponse, LeaseOut, LeaseUpdate,
    OfferRenewalRequest, RenewalResult, RespondRenewalRequest, TerminateLeaseRequest
)

router = APIRouter(
    prefix="/api/leases",
    tags=["leases"],
)


@router.post("/", response_model=LeaseOut)
def create_lease(
    payload: LeaseCreate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.lease_create))
):
    return crud.create(db, payload, current_user)


@router.get("/property/{property_id}", response_model=LeaseListResponse)
def get_property_leases(
    property_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.lease_list_by_property))
):
    return crud.get_by_property(db, property_id, current_user)


@router.get("/tenant/{tenant_id}", response_model=LeaseListResponse)
def get_tenant_leases(
    tenant_id: str,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.lease_list_by_tenant))
):
    return crud.get_by_tenant(db, tenant_id, current_user)


@router.post("/terminate", response_model=LeaseOut)
def terminate_lease(
    payload: TerminateLeaseRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.lease_terminate))
):
    return crud.terminate(db, payload, current_user, idempotency_key)


@router.put("/approve-termination", response_model=LeaseOut)
def approve_termination(
    payload: ApproveTerminationRequest,
    idempotency_key: Optional[str] = Header(None, alias="Idempotency-Key"),
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.lease_approve_termination))
):
    return crud.approve_termination(db, payload, current_user, idempotency_key)


@router.post("/offer-renewal", response_model=LeaseOut)
def offer_renewal(
    payload: OfferRenewalRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.lease_offer_renewal))
):
    return crud.offer_renewal(db, payload, current_user)


@router.put("/respond-renewal", response_model=RenewalResult)
def respond_renewal(
    payload: RespondRenewalRequest,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.lease_respond_renewal))
):
    return crud.respond_to_renewal(db, payload, current_user)


@router.get("/{lease_id}", response_model=LeaseOut)
def get_lease(
    lease_id: UUID,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.lease_read))
):
    return crud.get_by_id(db, lease_id, current_user)


@router.put("/{lease_id}", response_model=LeaseOut)
def update_lease(
    lease_id: UUID,
    payload: LeaseUpdate,
    db: Session = Depends(get_db),
    current_user: UserToken = Depends(require_capability(Operation.lease_update))
):
    return crud.update(db, lease_id, payload, current_user)
