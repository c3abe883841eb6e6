from fastapi.testclient import TestClient

from app.schemas.auth import UserRole


# login de member correcto: token + datos del member, sin hash
def test_member_login_success(client: TestClient, member_credentials):
    resp = client.post(
        "/api/auth/login/member",
        json={"email": member_credentials["email"], "password": member_credentials["password"]},
    )
    client.cookies.clear()
    assert resp.status_code == 200, resp.text

    data = resp.json()
    assert data["status"] == "ok"
    assert data["token_type"] == "bearer"
    assert data["access_token"]
    assert data["member"]["id"] == member_credentials["id"]
    assert data["member"]["role"] == "member"
    assert "hashed_password" not in data["member"]
    assert "staff" not in data


def test_staff_login_success(client: TestClient, librarian_credentials):
    resp = client.post(
        "/api/auth/login/staff",
        json={"email": librarian_credentials["email"], "password": librarian_credentials["password"]},
    )
    client.cookies.clear()
    assert resp.status_code == 200, resp.text

    data = resp.json()
    assert data["staff"]["role"] == "librarian"
    assert "member" not in data


def test_builtin_admin_can_login(client: TestClient, admin_credentials):
    resp = client.post("/api/auth/login/staff", json=admin_credentials)
    client.cookies.clear()
    assert resp.status_code == 200, resp.text
    assert resp.json()["staff"]["role"] == "admin"


def test_login_wrong_password_fails(client: TestClient, member_credentials):
    resp = client.post(
        "/api/auth/login/member",
        json={"email": member_credentials["email"], "password": "wrong"},
    )
    assert resp.status_code == 401
    assert resp.json() == {"status": "error", "message": "Invalid email or password."}


def test_login_unknown_email_fails(client: TestClient):
    resp = client.post("/api/auth/login/member", json={"email": "nobody@example.com", "password": "x"})
    assert resp.status_code == 401


# un member no puede entrar por el login de staff
def test_member_cannot_use_staff_login(client: TestClient, member_credentials):
    resp = client.post(
        "/api/auth/login/staff",
        json={"email": member_credentials["email"], "password": member_credentials["password"]},
    )
    assert resp.status_code == 401


def test_login_missing_fields_returns_400(client: TestClient):
    resp = client.post("/api/auth/login/member", json={"email": "someone@example.com"})
    assert resp.status_code == 400
    assert resp.json()["message"] == "Email and password are required."


def test_inactive_staff_cannot_login(client: TestClient, make_staff):
    staff = make_staff(is_active=False)
    resp = client.post("/api/auth/login/staff", json={"email": staff["email"], "password": staff["password"]})
    assert resp.status_code == 403


def test_login_sets_httponly_cookie(fresh_client: TestClient, member_credentials):
    resp = fresh_client.post(
        "/api/auth/login/member",
        json={"email": member_credentials["email"], "password": member_credentials["password"]},
    )
    assert resp.status_code == 200
    set_cookie = resp.headers["set-cookie"]
    assert "access_token=" in set_cookie
    assert "HttpOnly" in set_cookie


# con la cookie basta, sin header Authorization
def test_cookie_authenticates_requests(fresh_client: TestClient, member_credentials):
    fresh_client.post(
        "/api/auth/login/member",
        json={"email": member_credentials["email"], "password": member_credentials["password"]},
    )
    resp = fresh_client.get("/api/auth/me")
    assert resp.status_code == 200, resp.text
    assert resp.json()["id"] == member_credentials["id"]
    assert resp.json()["role"] == "member"


def test_me_requires_token(client: TestClient):
    resp = client.get("/api/auth/me")
    assert resp.status_code == 401
    assert resp.json()["status"] == "error"


def test_me_rejects_garbage_token(client: TestClient):
    resp = client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 401
    assert resp.json()["message"] == "Invalid or expired token."


def test_me_returns_staff_principal(client: TestClient, librarian_headers, librarian_credentials):
    resp = client.get("/api/auth/me", headers=librarian_headers)
    assert resp.status_code == 200
    assert resp.json() == {
        "id": librarian_credentials["id"],
        "email": librarian_credentials["email"],
        "role": "librarian",
    }


# logout revoca el token: después ya no sirve
def test_logout_revokes_token(client: TestClient, make_member, login_as):
    headers = login_as("member", make_member())

    resp = client.post("/api/auth/logout", headers=headers)
    assert resp.status_code == 204

    resp = client.get("/api/auth/me", headers=headers)
    assert resp.status_code == 401
    assert resp.json()["message"] == "Token revoked"


def test_logout_clears_cookie(fresh_client: TestClient, member_credentials):
    fresh_client.post(
        "/api/auth/login/member",
        json={"email": member_credentials["email"], "password": member_credentials["password"]},
    )
    resp = fresh_client.post("/api/auth/logout")
    assert resp.status_code == 204
    set_cookie = resp.headers["set-cookie"]
    assert "access_token=" in set_cookie
    assert "Max-Age=0" in set_cookie

    assert fresh_client.get("/api/auth/me").status_code == 401


def test_staff_check(client: TestClient, librarian_headers, member_headers, admin_headers):
    assert client.get("/api/auth/staff/check", headers=librarian_headers).status_code == 200
    assert client.get("/api/auth/staff/check", headers=admin_headers).json()["role"] == UserRole.ADMIN.value
    assert client.get("/api/auth/staff/check", headers=member_headers).status_code == 403
    assert client.get("/api/auth/staff/check").status_code == 401


def test_register_member(client: TestClient):
    payload = {
        "first_name": "New",
        "last_name": "Reader",
        "email": "new_reader@example.com",
        "password": "Password123!",
        "phone": "555-0100",
    }
    resp = client.post("/api/members/register", json=payload)
    assert resp.status_code == 201, resp.text
    assert resp.json()["email"] == payload["email"]

    # el mismo email no se puede registrar dos veces
    resp = client.post("/api/members/register", json=payload)
    assert resp.status_code == 409

    # y ya puede hacer login
    resp = client.post("/api/auth/login/member", json={"email": payload["email"], "password": payload["password"]})
    client.cookies.clear()
    assert resp.status_code == 200


def test_register_invalid_email_fails(client: TestClient):
    resp = client.post(
        "/api/members/register",
        json={"first_name": "A", "last_name": "B", "email": "correo-invalido", "password": "x"},
    )
    assert resp.status_code == 422
    assert resp.json()["status"] == "error"
    assert resp.json()["message"].startswith("email")
