import logging
from datetime import datetime, timezone
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from shared.core.schemas import UserToken
from shared.helpers import property_helper
from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode
from shared.utils.enums import UserRole

from ...core.permissions import forbidden
from ...enum.tenancy_enum import (
    ANOTHER_APPLICATION_APPROVED, ApplicationStatus, ReviewDecision, SagaType
)
from ...models.leasing_tenants.rental_applications import RentalApplication
from ...schemas.leasing_tenants.rental_applications_schemas import (
    RentalApplicationCreate, RentalApplicationListResponse, RentalApplicationOut, ReviewApplicationRequest
)
from ..tenancy import saga_service
from ..tenancy.saga_service import SagaStep

logger = logging.getLogger(__name__)


def to_out(obj: RentalApplication) -> RentalApplicationOut:
    return RentalApplicationOut.model_validate(obj)


def get_application_or_404(db: Session, application_id: UUID) -> RentalApplication:
    obj = (
        db.query(RentalApplication)
        .filter(RentalApplication.id == application_id)
        .first()
    )
    if not obj:
        return error_response(
            message="Application not found",
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


def duplicate_pending():
    return error_response(
        message="You already have a pending application for this property",
        status_code=AppStatusCode.DUPLICATE_ADD_ERROR,
        http_status=status.HTTP_409_CONFLICT
    )


# ----------------------------------------------------
# Submit
# ----------------------------------------------------
def submit(db: Session, payload: RentalApplicationCreate, current_user: UserToken) -> RentalApplicationOut:
    prop = property_helper.get_property_or_404(db, payload.property_id)

    if not prop.is_available:
        return invalid_state("Property is not available for rent")

    existing = (
        db.query(RentalApplication.id)
        .filter(
            RentalApplication.property_id == payload.property_id,
            RentalApplication.tenant_id == current_user.user_id,
            RentalApplication.status == ApplicationStatus.pending,
        )
        .first()
    )
    if existing:
        return duplicate_pending()

    obj = RentalApplication(
        property_id=payload.property_id,
        tenant_id=current_user.user_id,
        move_in_date=payload.move_in_date,
        lease_term=payload.lease_term,
        **payload.employment_info.model_dump(),
        credit_score=payload.credit_score,
        previous_rentals=[p.model_dump() for p in payload.previous_rentals],
        references=[r.model_dump() for r in payload.references],
        additional_notes=payload.additional_notes,
        status=ApplicationStatus.pending,
    )
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        # lost the race against a concurrent submit for the same pair
        db.rollback()
        return duplicate_pending()
    db.refresh(obj)

    logger.info("Application %s submitted by tenant %s for property %s",
                obj.id, current_user.user_id, obj.property_id)
    return to_out(obj)


# ----------------------------------------------------
# Review
# ----------------------------------------------------
def approval_steps(application_id: UUID, property_id: UUID, reviewer_id: str) -> List[SagaStep]:
    reviewed_at = datetime.now(timezone.utc)
    state = {"was_available": None, "rejected_ids": []}

    def approve_application(session: Session):
        app = get_application_or_404(session, application_id)
        if app.status != ApplicationStatus.pending:
            return invalid_state(
                f"Cannot review application with status: {app.status.value}")
        app.status = ApplicationStatus.approved
        app.reviewed_by = reviewer_id
        app.reviewed_at = reviewed_at

    def undo_approve_application(session: Session):
        app = get_application_or_404(session, application_id)
        app.status = ApplicationStatus.pending
        app.reviewed_by = None
        app.reviewed_at = None

    def mark_property_unavailable(session: Session):
        state["was_available"] = property_helper.set_property_availability(
            session, property_id, False)

    def restore_property_availability(session: Session):
        if state["was_available"] is not None:
            property_helper.set_property_availability(
                session, property_id, state["was_available"])

    def reject_sibling_applications(session: Session):
        siblings = (
            session.query(RentalApplication)
            .filter(
                RentalApplication.property_id == property_id,
                RentalApplication.id != application_id,
                RentalApplication.status == ApplicationStatus.pending,
            )
            .all()
        )
        for sibling in siblings:
            sibling.status = ApplicationStatus.rejected
            sibling.rejection_reason = ANOTHER_APPLICATION_APPROVED
            sibling.reviewed_by = reviewer_id
            sibling.reviewed_at = reviewed_at
        state["rejected_ids"] = [s.id for s in siblings]

    def reopen_sibling_applications(session: Session):
        if not state["rejected_ids"]:
            return
        siblings = (
            session.query(RentalApplication)
            .filter(RentalApplication.id.in_(state["rejected_ids"]))
            .all()
        )
        for sibling in siblings:
            sibling.status = ApplicationStatus.pending
            sibling.rejection_reason = None
            sibling.reviewed_by = None
            sibling.reviewed_at = None

    return [
        SagaStep("approve_application", approve_application, undo_approve_application),
        SagaStep("mark_property_unavailable", mark_property_unavailable, restore_property_availability),
        SagaStep("reject_sibling_applications", reject_sibling_applications, reopen_sibling_applications),
    ]


def review(
        db: Session,
        payload: ReviewApplicationRequest,
        current_user: UserToken,
        idempotency_key: Optional[str] = None) -> RentalApplicationOut:
    app = get_application_or_404(db, payload.application_id)
    prop = property_helper.get_property_or_404(db, app.property_id)

    if not property_helper.is_owner_or_manager(prop, current_user.user_id):
        return forbidden("Not authorized to review applications for this property")

    if saga_service.find_replay(db, SagaType.approve_application, app.id, idempotency_key):
        return to_out(app)

    if app.status != ApplicationStatus.pending:
        return invalid_state(
            f"Cannot review application with status: {app.status.value}")

    if payload.status == ReviewDecision.rejected:
        app.status = ApplicationStatus.rejected
        app.reviewed_by = current_user.user_id
        app.reviewed_at = datetime.now(timezone.utc)
        if payload.rejection_reason:
            app.rejection_reason = payload.rejection_reason
        db.commit()
        db.refresh(app)
        return to_out(app)

    saga_service.run_saga(
        db,
        SagaType.approve_application,
        app.id,
        approval_steps(app.id, prop.id, current_user.user_id),
        actor_id=current_user.user_id,
        idempotency_key=idempotency_key,
    )

    db.refresh(app)
    logger.info("Application %s approved by %s", app.id, current_user.user_id)
    return to_out(app)


# ----------------------------------------------------
# Cancel
# ----------------------------------------------------
def cancel(db: Session, application_id: UUID, current_user: UserToken) -> RentalApplicationOut:
    app = get_application_or_404(db, application_id)

    if app.tenant_id != current_user.user_id:
        return forbidden("Not authorized to cancel this application")

    if app.status != ApplicationStatus.pending:
        return invalid_state(
            f"Cannot cancel application with status: {app.status.value}")

    app.status = ApplicationStatus.canceled
    db.commit()
    db.refresh(app)
    return to_out(app)


# ----------------------------------------------------
# Reads
# ----------------------------------------------------
def get_by_id(db: Session, application_id: UUID, current_user: UserToken) -> RentalApplicationOut:
    app = get_application_or_404(db, application_id)

    if app.tenant_id != current_user.user_id:
        prop = property_helper.get_property_by_id(db, app.property_id)
        if not prop or not property_helper.is_owner_or_manager(prop, current_user.user_id):
            return forbidden("Not authorized to view this application")

    return to_out(app)


def get_by_property(db: Session, property_id: UUID, current_user: UserToken) -> RentalApplicationListResponse:
    prop = property_helper.get_property_or_404(db, property_id)

    if not property_helper.is_owner_or_manager(prop, current_user.user_id):
        return forbidden("Not authorized to view applications for this property")

    rows = (
        db.query(RentalApplication)
        .filter(RentalApplication.property_id == property_id)
        .order_by(RentalApplication.created_at.desc())
        .all()
    )
    return RentalApplicationListResponse(
        applications=[to_out(row) for row in rows], total=len(rows))


def get_by_tenant(db: Session, tenant_id: str, current_user: UserToken) -> RentalApplicationListResponse:
    if current_user.user_id != tenant_id and current_user.role == UserRole.TENANT:
        return forbidden("Not authorized to view these applications")

    rows = (
        db.query(RentalApplication)
        .filter(RentalApplication.tenant_id == tenant_id)
        .order_by(RentalApplication.created_at.desc())
        .all()
    )
    return RentalApplicationListResponse(
        applications=[to_out(row) for row in rows], total=len(rows))
