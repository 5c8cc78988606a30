import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.config import settings
from shared.core.schemas import FieldError, UserToken
from shared.helpers import property_helper
from shared.helpers.json_response_helper import error_response, reject_null_fields
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole

from ...core.permissions import forbidden
from ...enum.tenancy_enum import (
    ApplicationStatus, RenewalResponse, RenewalStatus, SagaType, TerminationRequester
)
from ...models.leasing_tenants.leases import Lease
from ...models.leasing_tenants.rental_applications import RentalApplication
from ...schemas.leasing_tenants.leases_schemas import (
    ApproveTerminationRequest, LeaseCreate, LeaseListResponse, LeaseOut, LeaseUpdate,
    OfferRenewalRequest, RenewalResult, RespondRenewalRequest, TerminateLeaseRequest
)
from ..tenancy import saga_service
from ..tenancy.saga_service import SagaStep

logger = logging.getLogger(__name__)

TERMINATION_FIELDS = (
    "termination_requested",
    "termination_requested_by",
    "termination_request_date",
    "termination_reason",
    "termination_approved_by",
    "termination_approved_date",
    "move_out_date",
    "is_active",
)


def to_out(obj: Lease) -> LeaseOut:
    return LeaseOut.model_validate(obj)


def get_lease_or_404(db: Session, lease_id: UUID) -> Lease:
    obj = db.query(Lease).filter(Lease.id == lease_id).first()
    if not obj:
        return error_response(
            message="Lease not found",
            status_code=AppStatusCode.NOT_FOUND,
            http_status=status.HTTP_404_NOT_FOUND
        )
    return obj


def invalid_state(message: str):
    return error_response(
        message=message,
        status_code=AppStatusCode.INVALID_STATE,
        http_status=status.HTTP_400_BAD_REQUEST
    )


def active_lease_conflict():
    return error_response(
        message="An active lease already exists for this property",
        status_code=AppStatusCode.DUPLICATE_ADD_ERROR,
        http_status=status.HTTP_409_CONFLICT
    )


def is_landlord(lease: Lease, user_id: str) -> bool:
    return user_id is not None and user_id in (lease.owner_id, lease.manager_id)


def infer_requester(lease: Lease, user_id: str) -> Optional[TerminationRequester]:
    if user_id == lease.tenant_id:
        return TerminationRequester.tenant
    if user_id == lease.owner_id:
        return TerminationRequester.owner
    if lease.manager_id and user_id == lease.manager_id:
        return TerminationRequester.manager
    return None


def get_active_lease(db: Session, property_id: UUID) -> Optional[Lease]:
    return (
        db.query(Lease)
        .filter(Lease.property_id == property_id, Lease.is_active == True)
        .first()
    )


# ----------------------------------------------------
# Create
# ----------------------------------------------------
def validate_source_application(db: Session, payload: LeaseCreate):
    application = (
        db.query(RentalApplication)
        .filter(RentalApplication.id == payload.application_id)
        .first()
    )
    if not application:
        return error_response(
            message="Rental application not found",
            status_code=AppStatusCode.NOT_FOUND,
            http_status=status.HTTP_404_NOT_FOUND
        )

    if application.status != ApplicationStatus.approved:
        return invalid_state(
            "Cannot create lease for an application that is not approved")

    errors = []
    if application.property_id != payload.property_id:
        errors.append(FieldError(
            field="property_id", message="Does not match the application's property"))
    if application.tenant_id != payload.tenant_id:
        errors.append(FieldError(
            field="tenant_id", message="Does not match the application's tenant"))
    if errors:
        return error_response(
            message="Application does not match property or tenant",
            status_code=AppStatusCode.INVALID_INPUT,
            http_status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            errors=errors
        )

    return application


def create(db: Session, payload: LeaseCreate, current_user: UserToken) -> LeaseOut:
    prop = property_helper.get_property_or_404(db, payload.property_id)

    if not property_helper.is_owner_or_manager(prop, current_user.user_id):
        return forbidden("Not authorized to create a lease for this property")

    if payload.application_id:
        validate_source_application(db, payload)

    if get_active_lease(db, prop.id):
        return active_lease_conflict()

    data = payload.model_dump(exclude_none=True, exclude={"documents"})
    obj = Lease(
        **data,
        id=uuid.uuid4(),
        documents=[d.model_dump(mode="json") for d in payload.documents or []],
        # snapshot, not a live reference to the property
        owner_id=prop.owner_id,
        manager_id=prop.manager_id,
        is_active=True,
    )

    if settings.STRICT_INTEGRITY:
        create_with_availability_cascade(db, obj, current_user)
    else:
        db.add(obj)
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            return active_lease_conflict()

    db.refresh(obj)
    logger.info("Lease %s created for property %s by %s",
                obj.id, obj.property_id, current_user.user_id)
    return to_out(obj)


def create_with_availability_cascade(db: Session, obj: Lease, current_user: UserToken):
    state = {"was_available": None}
    lease_id = obj.id
    property_id = obj.property_id

    def insert_lease(session: Session):
        session.add(obj)

    def remove_lease(session: Session):
        session.query(Lease).filter(Lease.id == lease_id).delete(
            synchronize_session=False)

    def mark_property_unavailable(session: Session):
        state["was_available"] = property_helper.set_property_availability(
            session, property_id, False)

    def restore_property_availability(session: Session):
        if state["was_available"] is not None:
            property_helper.set_property_availability(
                session, property_id, state["was_available"])

    try:
        saga_service.run_saga(
            db,
            SagaType.create_lease,
            lease_id,
            [
                SagaStep("insert_lease", insert_lease, remove_lease),
                SagaStep("mark_property_unavailable", mark_property_unavailable,
                         restore_property_availability),
            ],
            actor_id=current_user.user_id,
        )
    except IntegrityError:
        return active_lease_conflict()


# ----------------------------------------------------
# Update
# ----------------------------------------------------
def update(db: Session, lease_id: UUID, payload: LeaseUpdate, current_user: UserToken) -> LeaseOut:
    obj = get_lease_or_404(db, lease_id)

    if not is_landlord(obj, current_user.user_id):
        return forbidden("Not authorized to update this lease")

    # Don't allow changing property_id, tenant_id, owner_id
    data = payload.model_dump(
        exclude_unset=True, exclude={"property_id", "tenant_id", "owner_id", "documents"})
    reject_null_fields(data, nullable=("manager_id", "special_terms"))

    # Only owner can change manager_id
    if "manager_id" in data and obj.owner_id != current_user.user_id:
        data.pop("manager_id")

    if payload.documents is not None:
        data["documents"] = [d.model_dump(mode="json") for d in payload.documents]

    start_date = data.get("start_date", obj.start_date)
    end_date = data.get("end_date", obj.end_date)
    if end_date <= start_date:
        return error_response(
            message="end_date must be after start_date",
            status_code=AppStatusCode.INVALID_INPUT,
            http_status=status.HTTP_422_UNPROCESSABLE_ENTITY,
            errors=[FieldError(field="end_date", message="Must be after start_date")]
        )

    for k, v in data.items():
        setattr(obj, k, v)

    db.commit()
    db.refresh(obj)
    return to_out(obj)


# ----------------------------------------------------
# Termination
# ----------------------------------------------------
def deactivation_steps(lease_id: UUID, property_id: UUID, approver_id: str, request: Optional[dict] = None) -> List[SagaStep]:
    """Steps shared by owner-initiated termination and approve_termination.

    ``request`` carries the termination request fields when the request and
    its approval happen in the same operation.
    """
    state = {"previous": None, "was_available": None}

    def deactivate_lease(session: Session):
        lease = get_lease_or_404(session, lease_id)
        if not lease.is_active:
            return invalid_state("Lease is already inactive")
        state["previous"] = {field: getattr(lease, field) for field in TERMINATION_FIELDS}

        for field, value in (request or {}).items():
            setattr(lease, field, value)
        lease.termination_approved_by = approver_id
        lease.termination_approved_date = datetime.now(timezone.utc)
        lease.is_active = False

    def reactivate_lease(session: Session):
        lease = get_lease_or_404(session, lease_id)
        for field, value in (state["previous"] or {}).items():
            setattr(lease, field, value)

    def mark_property_available(session: Session):
        state["was_available"] = property_helper.set_property_availability(
            session, property_id, True)

    def restore_property_availability(session: Session):
        if state["was_available"] is not None:
            property_helper.set_property_availability(
                session, property_id, state["was_available"])

    return [
        SagaStep("deactivate_lease", deactivate_lease, reactivate_lease),
        SagaStep("mark_property_available", mark_property_available, restore_property_availability),
    ]


def terminate(
        db: Session,
        payload: TerminateLeaseRequest,
        current_user: UserToken,
        idempotency_key: Optional[str] = None) -> LeaseOut:
    lease = get_lease_or_404(db, payload.lease_id)

    requested_by = infer_requester(lease, current_user.user_id)
    if requested_by is None:
        return forbidden("Not authorized to terminate this lease")

    if saga_service.find_replay(db, SagaType.terminate_lease, lease.id, idempotency_key):
        return to_out(lease)

    if not lease.is_active:
        return invalid_state("Lease is already inactive")

    request = {
        "termination_requested": True,
        "termination_requested_by": requested_by,
        "termination_request_date": datetime.now(timezone.utc),
        "termination_reason": payload.reason,
        "move_out_date": payload.move_out_date,
        "termination_approved_by": None,
        "termination_approved_date": None,
    }

    if requested_by == TerminationRequester.tenant:
        # waits for approve_termination by the owner or manager
        for field, value in request.items():
            setattr(lease, field, value)
        db.commit()
        db.refresh(lease)
        logger.info("Termination of lease %s requested by tenant %s",
                    lease.id, current_user.user_id)
        return to_out(lease)

    saga_service.run_saga(
        db,
        SagaType.terminate_lease,
        lease.id,
        deactivation_steps(lease.id, lease.property_id, current_user.user_id, request),
        actor_id=current_user.user_id,
        idempotency_key=idempotency_key,
    )

    db.refresh(lease)
    logger.info("Lease %s terminated by %s %s",
                lease.id, requested_by.value, current_user.user_id)
    return to_out(lease)


def approve_termination(
        db: Session,
        payload: ApproveTerminationRequest,
        current_user: UserToken,
        idempotency_key: Optional[str] = None) -> LeaseOut:
    lease = get_lease_or_404(db, payload.lease_id)

    if not is_landlord(lease, current_user.user_id):
        return forbidden("Not authorized to approve termination requests")

    if saga_service.find_replay(db, SagaType.approve_termination, lease.id, idempotency_key):
        return to_out(lease)

    if not lease.termination_requested:
        return invalid_state("No termination request exists for this lease")

    if lease.termination_approved_by:
        return invalid_state("Termination request is already approved")

    saga_service.run_saga(
        db,
        SagaType.approve_termination,
        lease.id,
        deactivation_steps(lease.id, lease.property_id, current_user.user_id),
        actor_id=current_user.user_id,
        idempotency_key=idempotency_key,
    )

    db.refresh(lease)
    logger.info("Termination of lease %s approved by %s", lease.id, current_user.user_id)
    return to_out(lease)


# ----------------------------------------------------
# Renewal
# ----------------------------------------------------
def offer_renewal(db: Session, payload: OfferRenewalRequest, current_user: UserToken) -> LeaseOut:
    lease = get_lease_or_404(db, payload.lease_id)

    if not is_landlord(lease, current_user.user_id):
        return forbidden("Not authorized to offer renewal for this lease")

    if not lease.is_active:
        return invalid_state("Cannot offer renewal for inactive lease")

    if lease.renewal_status == RenewalStatus.accepted:
        return invalid_state("Renewal offer has already been accepted")

    lease.renewal_offered = True
    lease.renewal_offered_at = datetime.now(timezone.utc)
    lease.renewal_new_rent_amount = payload.new_rent_amount
    lease.renewal_new_term_length = payload.new_term_length
    lease.renewal_status = RenewalStatus.pending
    lease.renewal_response_date = None

    db.commit()
    db.refresh(lease)
    return to_out(lease)


def offer_expired(lease: Lease, now: datetime) -> bool:
    if not settings.RENEWAL_OFFER_VALID_DAYS or not lease.renewal_offered_at:
        return False
    offered_at = lease.renewal_offered_at
    if offered_at.tzinfo is None:
        offered_at = offered_at.replace(tzinfo=timezone.utc)
    return now - offered_at > timedelta(days=settings.RENEWAL_OFFER_VALID_DAYS)


def build_renewed_lease(lease: Lease) -> Lease:
    term_days = lease.renewal_new_term_length * settings.RENEWAL_TERM_DAYS_PER_MONTH
    return Lease(
        property_id=lease.property_id,
        tenant_id=lease.tenant_id,
        owner_id=lease.owner_id,
        manager_id=lease.manager_id,
        renewed_from_id=lease.id,
        start_date=lease.end_date,
        end_date=lease.end_date + timedelta(days=term_days),
        rent_amount=lease.renewal_new_rent_amount,
        security_deposit=lease.security_deposit,
        payment_due_day=lease.payment_due_day,
        late_fees_applicable=lease.late_fees_applicable,
        late_fee_amount=lease.late_fee_amount,
        late_fee_applicable_after_days=lease.late_fee_applicable_after_days,
        special_terms=lease.special_terms,
        documents=[],
        # activation is not automatic
        is_active=False,
    )


def respond_to_renewal(db: Session, payload: RespondRenewalRequest, current_user: UserToken) -> RenewalResult:
    lease = get_lease_or_404(db, payload.lease_id)

    if lease.tenant_id != current_user.user_id:
        return forbidden("Only the tenant can respond to renewal offers")

    if not lease.renewal_offered or lease.renewal_status is None:
        return invalid_state("No renewal offer exists for this lease")

    if lease.renewal_status != RenewalStatus.pending:
        return invalid_state(
            f"Renewal offer has already been {lease.renewal_status.value}")

    now = datetime.now(timezone.utc)
    if offer_expired(lease, now):
        lease.renewal_status = RenewalStatus.expired
        lease.renewal_response_date = now
        db.commit()
        return invalid_state("Renewal offer has expired")

    lease.renewal_status = RenewalStatus(payload.response.value)
    lease.renewal_response_date = now

    renewed = None
    if payload.response == RenewalResponse.accepted:
        renewed = build_renewed_lease(lease)
        db.add(renewed)

    db.commit()
    db.refresh(lease)
    if renewed is not None:
        db.refresh(renewed)
        logger.info("Lease %s renewed as %s", lease.id, renewed.id)

    return RenewalResult(
        lease=to_out(lease),
        renewed_lease=to_out(renewed) if renewed is not None else None,
    )


# ----------------------------------------------------
# Reads
# ----------------------------------------------------
def get_by_id(db: Session, lease_id: UUID, current_user: UserToken) -> LeaseOut:
    lease = get_lease_or_404(db, lease_id)

    if infer_requester(lease, current_user.user_id) is None:
        return forbidden("Not authorized to view this lease")

    return to_out(lease)


def get_by_property(db: Session, property_id: UUID, current_user: UserToken) -> LeaseListResponse:
    prop = property_helper.get_property_or_404(db, property_id)

    if not property_helper.is_owner_or_manager(prop, current_user.user_id):
        return forbidden("Not authorized to view leases for this property")

    rows = (
        db.query(Lease)
        .filter(Lease.property_id == property_id)
        .order_by(Lease.start_date.desc())
        .all()
    )
    return LeaseListResponse(leases=[to_out(row) for row in rows], total=len(rows))


def get_by_tenant(db: Session, tenant_id: str, current_user: UserToken) -> LeaseListResponse:
    if current_user.user_id != tenant_id and current_user.role == UserRole.TENANT:
        return forbidden("Not authorized to view these leases")

    rows = (
        db.query(Lease)
        .filter(Lease.tenant_id == tenant_id)
        .order_by(Lease.start_date.desc())
        .all()
    )
    return LeaseListResponse(leases=[to_out(row) for row in rows], total=len(rows))
