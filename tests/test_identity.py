import pytest
import requests
from fastapi.testclient import TestClient

from property_service.app.core.permissions import CAPABILITIES, Operation, is_allowed
from property_service.app.crud.properties import properties_crud
from property_service.app.main import app
from shared.core import auth
from shared.core.config import settings
from shared.utils.enums import UserRole
from tests.factories import create_property, owner_headers, property_payload


class FakeResponse:
    def __init__(self, status_code, body=None):
        self.status_code = status_code
        self._body = body

    def json(self):
        if self._body is None:
            raise ValueError("no body")
        return self._body


@pytest.fixture
def remote_identity(monkeypatch):
    monkeypatch.setattr(settings, "IDENTITY_MODE", "remote")
    calls = []

    def install(response=None, error=None):
        def fake_post(url, json=None, timeout=None):
            calls.append((url, json))
            if error is not None:
                raise error
            return response

        monkeypatch.setattr(auth.requests, "post", fake_post)
        return calls

    return install


def bearer(token="opaque-token"):
    return {"Authorization": f"Bearer {token}"}


def test_every_operation_has_capabilities():
    assert set(CAPABILITIES) == set(Operation)


@pytest.mark.parametrize("role, operation, allowed", [
    (UserRole.TENANT, Operation.lease_create, False),
    (UserRole.TENANT, Operation.application_submit, True),
    (UserRole.OWNER, Operation.application_submit, False),
    (UserRole.MANAGER, Operation.property_delete, False),
    (UserRole.MANAGER, Operation.lease_approve_termination, True),
    (UserRole.OWNER, Operation.lease_respond_renewal, False),
])
def test_capability_table(role, operation, allowed):
    assert is_allowed(role, operation) is allowed


@pytest.mark.parametrize("raw, role", [
    ("tenant", UserRole.TENANT),
    ("property_owner", UserRole.OWNER),
    ("Property_Manager", UserRole.MANAGER),
    ("OWNER", UserRole.OWNER),
])
def test_role_aliases(raw, role):
    assert UserRole(raw) is role


def test_garbage_token_is_401(client):
    response = client.post("/api/properties/", json=property_payload(), headers=bearer("not-a-jwt"))

    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_expired_token_is_401(client):
    token = auth.create_access_token({"user_id": "owner-1", "role": "owner"}, expires_minutes=-5)

    response = client.post("/api/properties/", json=property_payload(), headers=bearer(token))

    assert response.status_code == 401
    assert response.json()["status_code"] == "2002"


def test_unknown_role_is_401(client):
    token = auth.create_access_token({"user_id": "admin-1", "role": "super_admin"})

    response = client.post("/api/properties/", json=property_payload(), headers=bearer(token))

    assert response.status_code == 401


def test_remote_identity_resolves_role_alias(client, remote_identity):
    calls = remote_identity(FakeResponse(200, {"valid": True, "userId": "owner-9", "role": "property_owner"}))

    response = client.post("/api/properties/", json=property_payload(), headers=bearer())

    assert response.status_code == 200
    assert response.json()["data"]["owner_id"] == "owner-9"
    assert calls[0][0].endswith("/api/auth/verify-token")
    assert calls[0][1] == {"token": "opaque-token"}


def test_remote_identity_rejects_invalid_token(client, remote_identity):
    remote_identity(FakeResponse(200, {"valid": False}))

    response = client.post("/api/properties/", json=property_payload(), headers=bearer())

    assert response.status_code == 401


def test_remote_identity_unreachable_is_503(client, remote_identity):
    remote_identity(error=requests.ConnectionError("refused"))

    response = client.post("/api/properties/", json=property_payload(), headers=bearer())

    assert response.status_code == 503
    assert response.json()["message"] == "Identity service unavailable"


def test_remote_identity_server_error_is_503(client, remote_identity):
    remote_identity(FakeResponse(502))

    response = client.post("/api/properties/", json=property_payload(), headers=bearer())

    assert response.status_code == 503


def test_public_reads_need_no_identity(client, remote_identity):
    remote_identity(error=requests.ConnectionError("refused"))

    response = client.get("/api/properties/")

    assert response.status_code == 200


def test_unexpected_error_is_500(client, monkeypatch):
    prop = create_property(client)

    def boom(*args, **kwargs):
        raise RuntimeError("disk on fire")

    monkeypatch.setattr(properties_crud, "get_by_id", boom)

    with TestClient(app, raise_server_exceptions=False) as unsafe_client:
        response = unsafe_client.get(f"/api/properties/{prop['id']}")
        assert response.status_code == 500
        assert response.json()["message"] == "Internal Server Error: disk on fire"

        monkeypatch.setattr(settings, "ENVIRONMENT", "production")
        response = unsafe_client.get(f"/api/properties/{prop['id']}")
        assert response.json()["message"] == "Internal Server Error"


def test_unknown_route_is_wrapped(client):
    response = client.get("/api/nothing-here", headers=owner_headers())

    assert response.status_code == 404
    assert response.json()["status"] == "Failure"
