from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from folio.app import create_app
from folio.db.models import Document
from folio.db.session import get_engine


@pytest.fixture()
def client(temp_db):
    with TestClient(create_app()) as test_client:
        yield test_client


def _signup(client, handle="alice", email="a@x.com", credential="Secret1A"):
    return client.post("/accounts", json={"handle": handle, "email": email, "credential": credential})


def test_create_account_and_login(client):
    resp = _signup(client)
    assert resp.status_code == 201
    body = resp.json()
    assert body["success"] is True
    assert body["data"]["role"] == "standard"
    assert "credential_hash" not in body["data"]

    ok = client.post("/accounts/login", json={"email": "A@X.COM", "credential": "Secret1A"})
    assert ok.status_code == 200
    assert ok.json()["data"]["handle"] == "alice"

    bad = client.post("/accounts/login", json={"email": "a@x.com", "credential": "Wrong1A"})
    assert bad.status_code == 401
    assert bad.json()["success"] is False


def test_duplicate_handle_is_conflict(client):
    assert _signup(client).status_code == 201
    resp = _signup(client, email="other@x.com")
    assert resp.status_code == 409
    assert resp.json()["code"] == "duplicate_value"


def test_invalid_body_is_bad_request(client):
    resp = _signup(client, handle="a!", credential="weak")
    assert resp.status_code == 400
    fields = {err["field"] for err in resp.json()["errors"]}
    assert {"handle", "credential"} <= fields


def test_document_requires_existing_owner(client):
    resp = client.post("/documents", json={"title": "Orphan", "body": "", "owner_id": 42})
    assert resp.status_code == 404
    assert client.get("/documents/stats").json()["data"]["total"] == 0


def test_restore_active_account_is_conflict(client):
    account_id = _signup(client).json()["data"]["id"]
    assert client.patch(f"/accounts/{account_id}/restore").status_code == 409

    assert client.delete(f"/accounts/{account_id}").status_code == 200
    assert client.get(f"/accounts/{account_id}").status_code == 404
    assert client.get(f"/accounts/{account_id}", params={"include_deleted": True}).status_code == 200
    assert client.patch(f"/accounts/{account_id}/restore").status_code == 200

    assert client.delete(f"/accounts/{account_id}/force").status_code == 200
    assert client.get(f"/accounts/{account_id}", params={"include_deleted": True}).status_code == 404


def test_document_listing_pagination_and_ownership(client):
    owner = _signup(client).json()["data"]["id"]
    other = _signup(client, handle="bob", email="bob@x.com").json()["data"]["id"]
    ids = [
        client.post("/documents", json={"title": f"Doc {n:02d}", "body": "", "owner_id": owner}).json()["data"]["id"]
        for n in range(12)
    ]

    page = client.get("/documents", params={"page": 2, "limit": 5, "sort_by": "title", "sort_order": "ASC"}).json()
    assert [d["title"] for d in page["data"]] == ["Doc 05", "Doc 06", "Doc 07", "Doc 08", "Doc 09"]
    assert page["pagination"] == {"total": 12, "page": 2, "limit": 5, "total_pages": 3}

    forbidden = client.put(f"/documents/{ids[0]}", json={"body": "x", "actor_id": other})
    assert forbidden.status_code == 403

    batch = client.post("/documents/batch-delete", json={"ids": ids[:3] + [999]})
    assert batch.json()["data"] == {"affected": 3}
    assert client.get("/documents/stats", params={"owner_id": owner}).json()["data"] == {
        "total": 12,
        "active": 9,
        "deleted": 3,
    }


def test_search_requires_keyword(client):
    assert client.get("/documents/search").status_code == 400


def test_storage_failure_is_service_unavailable(client):
    Document.__table__.drop(get_engine())
    resp = client.get("/documents/stats")
    assert resp.status_code == 503
    body = resp.json()
    assert body["success"] is False
    assert body["code"] == "storage_failure"


def test_unknown_visibility_is_bad_request(client):
    _signup(client)
    resp = client.get("/accounts", params={"visibility": "everything"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "validation_failed"
    assert client.get("/accounts", params={"visibility": "include_deleted"}).json()["pagination"]["total"] == 1


def test_document_restore_and_purge_take_actor(client):
    owner = _signup(client).json()["data"]["id"]
    other = _signup(client, handle="bob", email="bob@x.com").json()["data"]["id"]
    doc = client.post("/documents", json={"title": "Mine", "body": "", "owner_id": owner}).json()["data"]
    assert doc["owner"] == {"id": owner, "handle": "alice", "email": "a@x.com"}

    assert client.delete(f"/documents/{doc['id']}", params={"actor_id": owner}).status_code == 200
    assert client.patch(f"/documents/{doc['id']}/restore", params={"actor_id": other}).status_code == 403
    assert client.patch(f"/documents/{doc['id']}/restore", params={"actor_id": owner}).status_code == 200
    assert client.delete(f"/documents/{doc['id']}/force", params={"actor_id": other}).status_code == 403
    assert client.delete(f"/documents/{doc['id']}/force", params={"actor_id": owner}).status_code == 200
