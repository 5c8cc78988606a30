"""Ordered, locally committed cascade steps with compensations.

Approving an application or terminating a lease touches more than one entity
(application/lease plus the property's availability plus sibling
applications). Those writes are not covered by one transaction, so each
cascade is run as a saga: every step commits on its own and is recorded in
``tenancy_saga_steps``; when a step fails, the steps that already committed
are compensated in reverse order and the original error is re-raised.
"""
import logging
from typing import Callable, List, Optional, Tuple
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy.orm import Session

from shared.helpers.json_response_helper import error_response
from shared.utils.app_status_code import AppStatusCode

from ...enum.tenancy_enum import SagaStatus, SagaStepStatus, SagaType
from ...models.tenancy.tenancy_sagas import TenancySaga, TenancySagaStep

logger = logging.getLogger(__name__)


class SagaStep:
    def __init__(
            self,
            name: str,
            action: Callable[[Session], None],
            compensation: Optional[Callable[[Session], None]] = None):
        self.name = name
        self.action = action
        self.compensation = compensation

    def __repr__(self):
        return f"SagaStep({self.name!r})"


def describe_error(exc: Exception) -> str:
    if isinstance(exc, HTTPException):
        if isinstance(exc.detail, dict):
            return str(exc.detail.get("message") or exc.detail)
        return str(exc.detail)
    return f"{type(exc).__name__}: {exc}"


def get_by_idempotency_key(db: Session, idempotency_key: Optional[str]) -> Optional[TenancySaga]:
    if not idempotency_key:
        return None
    return (
        db.query(TenancySaga)
        .filter(TenancySaga.idempotency_key == idempotency_key)
        .first()
    )


def find_replay(db: Session, saga_type: SagaType, entity_id: UUID, idempotency_key: Optional[str]) -> Optional[TenancySaga]:
    """Return the completed saga a retried request refers to, if any."""
    saga = get_by_idempotency_key(db, idempotency_key)
    if not saga:
        return None

    if saga.saga_type != saga_type or saga.entity_id != entity_id:
        return error_response(
            message="Idempotency key already used for a different operation",
            status_code=AppStatusCode.DUPLICATE_ADD_ERROR,
            http_status=status.HTTP_409_CONFLICT
        )

    if saga.status == SagaStatus.running:
        return error_response(
            message="A request with this idempotency key is still in progress",
            status_code=AppStatusCode.DUPLICATE_ADD_ERROR,
            http_status=status.HTTP_409_CONFLICT
        )

    return saga


def _record_step(db: Session, saga: TenancySaga, sequence: int, step: SagaStep):
    db.add(TenancySagaStep(
        saga_id=saga.id,
        sequence=sequence,
        step_name=step.name,
        status=SagaStepStatus.completed,
    ))


def _compensate(db: Session, saga: TenancySaga, completed: List[Tuple[int, SagaStep]]) -> bool:
    all_ok = True
    for sequence, step in reversed(completed):
        record = (
            db.query(TenancySagaStep)
            .filter(TenancySagaStep.saga_id == saga.id, TenancySagaStep.sequence == sequence)
            .first()
        )
        if step.compensation is None:
            continue
        try:
            step.compensation(db)
            if record:
                record.status = SagaStepStatus.compensated
            db.commit()
            logger.info("Saga %s compensated step %s", saga.id, step.name)
        except Exception as exc:
            db.rollback()
            all_ok = False
            logger.exception("Saga %s failed to compensate step %s", saga.id, step.name)
            record = (
                db.query(TenancySagaStep)
                .filter(TenancySagaStep.saga_id == saga.id, TenancySagaStep.sequence == sequence)
                .first()
            )
            if record:
                record.status = SagaStepStatus.compensation_failed
                record.notes = describe_error(exc)
                db.commit()
    return all_ok


def run_saga(
        db: Session,
        saga_type: SagaType,
        entity_id: UUID,
        steps: List[SagaStep],
        actor_id: Optional[str] = None,
        idempotency_key: Optional[str] = None) -> TenancySaga:
    saga = TenancySaga(
        saga_type=saga_type,
        entity_id=entity_id,
        actor_id=actor_id,
        idempotency_key=idempotency_key,
        status=SagaStatus.running,
    )
    db.add(saga)
    db.commit()
    logger.info("Saga %s (%s) started for %s", saga.id, saga_type.value, entity_id)

    completed: List[Tuple[int, SagaStep]] = []
    for sequence, step in enumerate(steps, start=1):
        try:
            step.action(db)
            _record_step(db, saga, sequence, step)
            db.commit()
        except Exception as exc:
            db.rollback()
            logger.warning(
                "Saga %s aborted at step %s: %s", saga.id, step.name, describe_error(exc))
            compensated = _compensate(db, saga, completed)

            saga.status = SagaStatus.compensated if compensated else SagaStatus.compensation_failed
            saga.error = f"{step.name}: {describe_error(exc)}"
            # free the key so the client can retry the whole operation
            saga.idempotency_key = None
            db.commit()
            raise
        completed.append((sequence, step))

    saga.status = SagaStatus.completed
    db.commit()
    logger.info("Saga %s completed (%d steps)", saga.id, len(steps))
    return saga
