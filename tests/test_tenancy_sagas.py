from uuid import UUID

from property_service.app.enum.tenancy_enum import SagaStatus, SagaStepStatus, SagaType
from property_service.app.models.leasing_tenants.leases import Lease
from property_service.app.models.tenancy.tenancy_sagas import TenancySaga, TenancySagaStep
from shared.core.database import PropertySessionLocal
from shared.helpers import property_helper
from tests.factories import (
    OTHER_TENANT, approve_application, create_lease, create_property, get_property, lease_payload,
    owner_headers, submit_application, tenant_headers
)


def property_service_down(monkeypatch):
    def fail(*args, **kwargs):
        return property_helper.property_lookup_unavailable(RuntimeError("connection refused"))

    monkeypatch.setattr(property_helper, "set_property_availability", fail)


def sagas(saga_type):
    db = PropertySessionLocal()
    try:
        return [
            (saga.status, saga.error, [step.status for step in saga.steps])
            for saga in db.query(TenancySaga).filter(TenancySaga.saga_type == saga_type).all()
        ]
    finally:
        db.close()


def test_approval_saga_records_completed_steps(client):
    prop = create_property(client)
    app = submit_application(client, prop["id"])

    approve_application(client, app["id"])

    [(status, error, steps)] = sagas(SagaType.approve_application)
    assert status == SagaStatus.completed
    assert error is None
    assert steps == [SagaStepStatus.completed] * 3


def test_approval_compensated_when_property_update_fails(client, monkeypatch):
    prop = create_property(client)
    app = submit_application(client, prop["id"])
    sibling = submit_application(client, prop["id"], OTHER_TENANT)
    property_service_down(monkeypatch)

    response = approve_application(client, app["id"])

    assert response.status_code == 503
    [(status, error, steps)] = sagas(SagaType.approve_application)
    assert status == SagaStatus.compensated
    assert error.startswith("mark_property_unavailable")
    assert steps == [SagaStepStatus.compensated]

    monkeypatch.undo()
    assert client.get(
        f"/api/applications/{app['id']}", headers=owner_headers()).json()["data"]["status"] == "pending"
    assert client.get(
        f"/api/applications/{sibling['id']}", headers=owner_headers()).json()["data"]["status"] == "pending"
    assert get_property(client, prop["id"])["is_available"] is True


def test_failed_saga_releases_idempotency_key(client, monkeypatch):
    prop = create_property(client)
    app = submit_application(client, prop["id"])
    property_service_down(monkeypatch)

    assert approve_application(client, app["id"], idempotency_key="review-1").status_code == 503

    monkeypatch.undo()
    response = approve_application(client, app["id"], idempotency_key="review-1")

    assert response.status_code == 200
    assert response.json()["data"]["status"] == "approved"


def test_idempotent_replay_returns_current_state(client):
    prop = create_property(client)
    app = submit_application(client, prop["id"])

    first = approve_application(client, app["id"], idempotency_key="review-2")
    second = approve_application(client, app["id"], idempotency_key="review-2")

    assert first.status_code == 200
    assert second.status_code == 200
    assert second.json()["data"]["status"] == "approved"
    assert len(sagas(SagaType.approve_application)) == 1


def test_idempotency_key_reused_for_other_entity_conflicts(client):
    prop = create_property(client)
    first = submit_application(client, prop["id"])
    other_prop = create_property(client)
    second = submit_application(client, other_prop["id"])

    approve_application(client, first["id"], idempotency_key="review-3")
    response = approve_application(client, second["id"], idempotency_key="review-3")

    assert response.status_code == 409


def test_owner_termination_compensated(client, monkeypatch):
    prop = create_property(client)
    lease = create_lease(client, prop["id"])
    property_service_down(monkeypatch)

    response = client.post(
        "/api/leases/terminate",
        json={"lease_id": lease["id"], "reason": "Selling"},
        headers=owner_headers(),
    )

    assert response.status_code == 503
    [(status, _, _)] = sagas(SagaType.terminate_lease)
    assert status == SagaStatus.compensated

    monkeypatch.undo()
    data = client.get(f"/api/leases/{lease['id']}", headers=owner_headers()).json()["data"]
    assert data["is_active"] is True
    assert data["termination_requested"] is False


def test_approve_termination_compensated_keeps_request(client, monkeypatch):
    prop = create_property(client)
    lease = create_lease(client, prop["id"])
    client.post(
        "/api/leases/terminate", json={"lease_id": lease["id"], "reason": "Moving"}, headers=tenant_headers())
    property_service_down(monkeypatch)

    response = client.put(
        "/api/leases/approve-termination", json={"lease_id": lease["id"]}, headers=owner_headers())

    assert response.status_code == 503
    monkeypatch.undo()
    data = client.get(f"/api/leases/{lease['id']}", headers=owner_headers()).json()["data"]
    assert data["is_active"] is True
    assert data["termination_requested"] is True
    assert data["termination_details"]["approved_by"] is None


def test_strict_lease_create_marks_property_unavailable(client, strict_integrity):
    prop = create_property(client)

    create_lease(client, prop["id"])

    assert get_property(client, prop["id"])["is_available"] is False
    [(status, _, steps)] = sagas(SagaType.create_lease)
    assert status == SagaStatus.completed
    assert len(steps) == 2


def test_strict_lease_create_compensated(client, strict_integrity, monkeypatch):
    prop = create_property(client)
    property_service_down(monkeypatch)

    response = client.post("/api/leases/", json=lease_payload(prop["id"]), headers=owner_headers())

    assert response.status_code == 503
    db = PropertySessionLocal()
    try:
        assert db.query(Lease).filter(Lease.property_id == UUID(prop["id"])).count() == 0
        assert db.query(TenancySagaStep).filter(
            TenancySagaStep.status == SagaStepStatus.compensated).count() == 1
    finally:
        db.close()
