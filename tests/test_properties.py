from uuid import uuid4

from tests.factories import (
    MANAGER, OWNER, TENANT, create_lease, create_property, get_property, manager_headers,
    owner_headers, submit_application, tenant_headers, property_payload
)


def test_create_property_sets_owner_and_availability(client):
    response = client.post(
        "/api/properties/", json=property_payload(), headers=owner_headers())

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "Success"
    data = body["data"]
    assert data["owner_id"] == OWNER
    assert data["is_available"] is True
    assert data["address"]["city"] == "Springfield"
    assert data["address"]["country"] == "USA"


def test_create_property_requires_token(client):
    response = client.post("/api/properties/", json=property_payload())

    assert response.status_code == 401
    assert response.json()["status"] == "Failure"


def test_tenant_cannot_create_property(client):
    response = client.post(
        "/api/properties/", json=property_payload(), headers=tenant_headers())

    assert response.status_code == 403


def test_create_property_reports_every_missing_field(client):
    payload = property_payload()
    del payload["title"]
    del payload["rent_amount"]

    response = client.post("/api/properties/", json=payload, headers=owner_headers())

    assert response.status_code == 422
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"title", "rent_amount"} <= fields


def test_list_properties_filters_and_paginates(client):
    create_property(client, rent_amount=900, bedrooms=1)
    create_property(client, rent_amount=1500, bedrooms=2)
    create_property(client, rent_amount=2500, bedrooms=3, address={
        "street": "1 Main", "city": "Chicago", "state": "IL", "zip_code": "60601"})

    response = client.get("/api/properties/", params={"min_rent": 1000, "max_rent": 2000})
    data = response.json()["data"]
    assert data["total"] == 1
    assert data["properties"][0]["bedrooms"] == 2

    response = client.get("/api/properties/", params={"city": "chic"})
    assert response.json()["data"]["total"] == 1

    response = client.get("/api/properties/", params={"limit": 2})
    data = response.json()["data"]
    assert data["total"] == 3
    assert len(data["properties"]) == 2


def test_blank_query_params_are_ignored(client):
    create_property(client)

    response = client.get("/api/properties/", params={"city": "", "search": "  "})

    assert response.status_code == 200
    assert response.json()["data"]["total"] == 1


def test_search_matches_text_fields(client):
    create_property(client, title="Loft downtown")
    create_property(client, title="Cottage", description="Quiet street")

    response = client.get("/api/properties/search", params={"query": "loft"})

    assert response.status_code == 200
    titles = [p["title"] for p in response.json()["data"]]
    assert titles == ["Loft downtown"]


def test_search_requires_query(client):
    response = client.get("/api/properties/search", params={"query": ""})

    assert response.status_code == 422


def test_get_unknown_property_is_404(client):
    response = client.get(f"/api/properties/{uuid4()}")

    assert response.status_code == 404
    assert response.json()["message"] == "Property not found"


def test_get_by_owner_self_or_manager(client):
    create_property(client)
    create_property(client, owner_id="owner-2")

    response = client.get(f"/api/properties/owner/{OWNER}", headers=owner_headers())
    assert len(response.json()["data"]) == 1

    response = client.get(f"/api/properties/owner/{OWNER}", headers=manager_headers())
    assert response.status_code == 200

    response = client.get(f"/api/properties/owner/{OWNER}", headers=owner_headers("owner-2"))
    assert response.status_code == 403


def test_update_ignores_owner_change(client):
    prop = create_property(client)

    response = client.put(
        f"/api/properties/{prop['id']}",
        json={"title": "Renamed", "owner_id": "someone-else", "address": {"city": "Peoria"}},
        headers=owner_headers(),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert data["title"] == "Renamed"
    assert data["owner_id"] == OWNER
    assert data["address"]["city"] == "Peoria"
    assert data["address"]["street"] == "12 Elm Street"


def test_manager_updates_but_cannot_reassign_manager(client):
    prop = create_property(client)
    client.post(
        "/api/properties/assign-manager",
        json={"property_id": prop["id"], "manager_id": MANAGER},
        headers=owner_headers(),
    )

    response = client.put(
        f"/api/properties/{prop['id']}",
        json={"rent_amount": 1600, "manager_id": "manager-2"},
        headers=manager_headers(),
    )

    assert response.status_code == 200
    data = response.json()["data"]
    assert float(data["rent_amount"]) == 1600
    assert data["manager_id"] == MANAGER


def test_unrelated_owner_cannot_update(client):
    prop = create_property(client)

    response = client.put(
        f"/api/properties/{prop['id']}", json={"title": "Mine now"}, headers=owner_headers("owner-2"))

    assert response.status_code == 403


def test_assign_manager_is_owner_only(client):
    prop = create_property(client)

    response = client.post(
        "/api/properties/assign-manager",
        json={"property_id": prop["id"], "manager_id": MANAGER},
        headers=owner_headers("owner-2"),
    )
    assert response.status_code == 403

    response = client.post(
        "/api/properties/assign-manager",
        json={"property_id": prop["id"], "manager_id": MANAGER},
        headers=owner_headers(),
    )
    assert response.status_code == 200
    assert response.json()["data"]["manager_id"] == MANAGER


def test_delete_property(client):
    prop = create_property(client)

    response = client.delete(f"/api/properties/{prop['id']}", headers=owner_headers())

    assert response.status_code == 200
    assert response.json()["message"] == "Property deleted successfully"
    assert client.get(f"/api/properties/{prop['id']}").status_code == 404


def test_delete_is_owner_only(client):
    prop = create_property(client)

    response = client.delete(f"/api/properties/{prop['id']}", headers=manager_headers(OWNER))
    assert response.status_code == 403

    response = client.delete(f"/api/properties/{prop['id']}", headers=owner_headers("owner-2"))
    assert response.status_code == 403


def test_delete_with_references_allowed_by_default(client):
    prop = create_property(client)
    submit_application(client, prop["id"])

    response = client.delete(f"/api/properties/{prop['id']}", headers=owner_headers())

    assert response.status_code == 200


def test_strict_delete_blocked_by_active_lease(client, strict_integrity):
    prop = create_property(client)
    create_lease(client, prop["id"])

    response = client.delete(f"/api/properties/{prop['id']}", headers=owner_headers())

    assert response.status_code == 409
    assert "active lease" in response.json()["message"]
    assert get_property(client, prop["id"])["id"] == prop["id"]


def test_strict_delete_blocked_by_pending_application(client, strict_integrity):
    prop = create_property(client)
    submit_application(client, prop["id"], TENANT)

    response = client.delete(f"/api/properties/{prop['id']}", headers=owner_headers())

    assert response.status_code == 409


def test_health(client):
    response = client.get("/api/health")

    assert response.status_code == 200
    assert response.json()["data"] == {"status": "ok"}


def test_update_rejects_null_for_required_fields(client):
    prop = create_property(client)

    response = client.put(
        f"/api/properties/{prop['id']}",
        json={"title": None, "rent_amount": None, "address": {"city": None}},
        headers=owner_headers(),
    )

    assert response.status_code == 422
    fields = {error["field"] for error in response.json()["errors"]}
    assert fields == {"title", "rent_amount"}
    assert get_property(client, prop["id"])["title"] == prop["title"]

    response = client.put(
        f"/api/properties/{prop['id']}", json={"address": {"city": None}}, headers=owner_headers())

    assert response.status_code == 422
    assert [e["field"] for e in response.json()["errors"]] == ["address.city"]


def test_owner_can_clear_manager(client):
    prop = create_property(client)
    client.post(
        "/api/properties/assign-manager",
        json={"property_id": prop["id"], "manager_id": MANAGER},
        headers=owner_headers(),
    )

    response = client.put(
        f"/api/properties/{prop['id']}", json={"manager_id": None}, headers=owner_headers())

    assert response.status_code == 200
    assert response.json()["data"]["manager_id"] is None
