import uuid

import pytest
from fastapi.testclient import TestClient

#Control de acceso: 401 sin token, 403 con rol insuficiente, admin pasa todo


# ============================================================
# Endpoints solo para staff
# ============================================================
STAFF_ONLY = [
    ("get", "/api/members/"),
    ("get", "/api/loans/"),
    ("get", "/api/fines/"),
    ("get", "/api/logs/telemetry"),
    ("get", "/api/auth/staff/check"),
    ("get", "/api/dashboard/stats"),
    ("get", "/api/dashboard/popular-books"),
    ("get", "/api/dashboard/loan-activity"),
]


@pytest.mark.parametrize("method,path", STAFF_ONLY)
def test_staff_only_requires_token(client: TestClient, method, path):
    resp = getattr(client, method)(path)
    assert resp.status_code == 401, resp.text
    assert resp.json()["status"] == "error"


@pytest.mark.parametrize("method,path", STAFF_ONLY)
def test_staff_only_forbidden_for_member(client: TestClient, member_headers, method, path):
    resp = getattr(client, method)(path, headers=member_headers)
    assert resp.status_code == 403, resp.text
    assert resp.json()["message"] == "Insufficient permissions"


@pytest.mark.parametrize("method,path", STAFF_ONLY)
def test_staff_only_allowed_for_librarian(client: TestClient, librarian_headers, method, path):
    resp = getattr(client, method)(path, headers=librarian_headers)
    assert resp.status_code == 200, resp.text


# admin es un superconjunto de librarian
@pytest.mark.parametrize("method,path", STAFF_ONLY)
def test_staff_only_allowed_for_admin(client: TestClient, admin_headers, method, path):
    resp = getattr(client, method)(path, headers=admin_headers)
    assert resp.status_code == 200, resp.text


# ============================================================
# Catálogo: lectura pública, escritura staff
# ============================================================
def test_catalog_is_public(client: TestClient):
    assert client.get("/api/books/").status_code == 200
    assert client.get("/api/authors/").status_code == 200


def test_member_cannot_create_book(client: TestClient, member_headers):
    resp = client.post(
        "/api/books/",
        json={"title": "Nope", "isbn": f"RBAC-{uuid.uuid4().hex[:8]}"},
        headers=member_headers,
    )
    assert resp.status_code == 403


def test_anonymous_cannot_create_author(client: TestClient):
    resp = client.post("/api/authors/", json={"first_name": "A", "last_name": "B"})
    assert resp.status_code == 401


# ============================================================
# Datos de member: el propio member o staff
# ============================================================
def test_member_can_read_own_profile(client: TestClient, member_headers, member_credentials):
    resp = client.get(f"/api/members/{member_credentials['id']}", headers=member_headers)
    assert resp.status_code == 200
    assert resp.json()["email"] == member_credentials["email"]


def test_member_cannot_read_other_member(client: TestClient, member_headers, other_member_credentials):
    resp = client.get(f"/api/members/{other_member_credentials['id']}", headers=member_headers)
    assert resp.status_code == 403


def test_member_cannot_read_other_member_loans(client: TestClient, member_headers, other_member_credentials):
    resp = client.get(f"/api/members/{other_member_credentials['id']}/loans", headers=member_headers)
    assert resp.status_code == 403


def test_member_can_read_own_loans_and_fines(client: TestClient, member_headers, member_credentials):
    member_id = member_credentials["id"]
    assert client.get(f"/api/members/{member_id}/loans", headers=member_headers).status_code == 200
    assert client.get(f"/api/members/{member_id}/fines", headers=member_headers).status_code == 200


def test_librarian_can_read_any_member(client: TestClient, librarian_headers, other_member_credentials):
    resp = client.get(f"/api/members/{other_member_credentials['id']}", headers=librarian_headers)
    assert resp.status_code == 200


def test_member_can_update_own_profile(client: TestClient, make_member, login_as):
    member = make_member()
    headers = login_as("member", member)

    resp = client.put(f"/api/members/{member['id']}", json={"phone": "555-9999"}, headers=headers)
    assert resp.status_code == 200, resp.text
    assert resp.json()["phone"] == "555-9999"


def test_member_cannot_delete_members(client: TestClient, member_headers, other_member_credentials):
    resp = client.delete(f"/api/members/{other_member_credentials['id']}", headers=member_headers)
    assert resp.status_code == 403


def test_librarian_can_delete_member(client: TestClient, librarian_headers, make_member):
    member = make_member()
    resp = client.delete(f"/api/members/{member['id']}", headers=librarian_headers)
    assert resp.status_code == 204

    resp = client.get(f"/api/members/{member['id']}", headers=librarian_headers)
    assert resp.status_code == 404
    assert resp.json() == {"status": "error", "message": "Member not found."}


# un token de member cuyo member ya no existe no sirve
def test_token_of_deleted_member_is_rejected(client: TestClient, make_member, login_as, librarian_headers):
    member = make_member()
    headers = login_as("member", member)

    client.delete(f"/api/members/{member['id']}", headers=librarian_headers)

    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 401
