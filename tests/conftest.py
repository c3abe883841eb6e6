#configuracion de los test
import os
import sys
import tempfile
import uuid
from pathlib import Path
from typing import Generator

import pytest
from fastapi.testclient import TestClient
from pymongo import DESCENDING

# ======================================================
# Ajuste del sys.path para que 'app/' sea importable
# ======================================================
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

# ======================================================
# Entorno de pruebas: SQLite temporal en vez de MySQL, sin MongoDB
# (tiene que ir antes de importar la app)
# ======================================================
_TMP_DIR = Path(tempfile.mkdtemp(prefix="city-archive-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.db'}"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["MONGO_URI"] = ""

# ======================================================
# Imports de la aplicación
# ======================================================
from app.main import app
from app.api.v1.dependencies import get_telemetry_sink
from app.core.config import settings
from app.core.security import hash_password
from app.db.models import Librarian, Member
from app.db.session import Base, SessionLocal, engine
from app.db.telemetry import TelemetrySink
from app.schemas.auth import UserRole

Base.metadata.create_all(engine)


# ======================================================
# Helpers
# ======================================================
def unique_email(prefix: str) -> str:
    return f"{prefix}_{uuid.uuid4().hex[:8]}@example.com"


def ensure_member(email: str, password: str, first_name: str = "Member", last_name: str = "Test") -> int:
    with SessionLocal() as db:
        member = db.query(Member).filter(Member.email == email).first()
        if not member:
            member = Member(
                first_name=first_name,
                last_name=last_name,
                email=email,
                hashed_password=hash_password(password),
            )
            db.add(member)
            db.commit()
            db.refresh(member)
        return member.id


def ensure_staff(email: str, password: str, role: UserRole = UserRole.LIBRARIAN, is_active: bool = True) -> int:
    with SessionLocal() as db:
        staff = db.query(Librarian).filter(Librarian.email == email).first()
        if not staff:
            staff = Librarian(
                first_name="Staff",
                last_name="Test",
                email=email,
                hashed_password=hash_password(password),
                role=role,
                is_active=is_active,
            )
            db.add(staff)
            db.commit()
            db.refresh(staff)
        return staff.id


def login(client: TestClient, kind: str, email: str, password: str) -> str:
    """
    Hace login y devuelve el access_token.
    Limpia las cookies para que el resto de tests usen solo el header.
    """
    resp = client.post(f"/api/auth/login/{kind}", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    client.cookies.clear()
    return resp.json()["access_token"]


# ======================================================
# Fake de la colección de Mongo para telemetría
# ======================================================
class FakeInsertResult:
    def __init__(self, inserted_id):
        self.inserted_id = inserted_id


class FakeCursor:
    def __init__(self, docs):
        self._docs = list(docs)

    def sort(self, key, direction):
        self._docs.sort(key=lambda d: d.get(key), reverse=direction == DESCENDING)
        return self

    def limit(self, n):
        self._docs = self._docs[:n]
        return self

    def __iter__(self):
        return iter(self._docs)


class FakeCollection:
    def __init__(self):
        self.docs = []

    def insert_one(self, doc):
        doc = dict(doc)
        doc["_id"] = uuid.uuid4().hex
        self.docs.append(doc)
        return FakeInsertResult(doc["_id"])

    def find(self):
        return FakeCursor(self.docs)


# ======================================================
# DB SESSION FIXTURE
# ======================================================
@pytest.fixture
def db_session() -> Generator:
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


# ======================================================
# CLIENT FIXTURE
# ======================================================
@pytest.fixture(scope="session")
def client():
    """
    TestClient de FastAPI (con contexto, ejecuta el startup).
    """
    with TestClient(app) as c:
        yield c


@pytest.fixture
def fresh_client(client):
    """
    Cliente sin cookies compartidas, para probar el flujo con cookie.
    Depende de `client` para que el startup ya haya corrido.
    """
    c = TestClient(app)
    try:
        yield c
    finally:
        c.close()


# ======================================================
# ADMIN FIXTURES (admin embebido creado en el startup)
# ======================================================
@pytest.fixture(scope="session")
def admin_credentials():
    return {"email": settings.BUILTIN_ADMIN_EMAIL, "password": settings.BUILTIN_ADMIN_PASSWORD}


@pytest.fixture(scope="session")
def admin_token(client: TestClient, admin_credentials):
    return login(client, "staff", admin_credentials["email"], admin_credentials["password"])


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


# ======================================================
# LIBRARIAN FIXTURES
# ======================================================
@pytest.fixture(scope="session")
def librarian_credentials():
    creds = {"email": "librarian_test@example.com", "password": "librarian123"}
    creds["id"] = ensure_staff(creds["email"], creds["password"], UserRole.LIBRARIAN)
    return creds


@pytest.fixture(scope="session")
def librarian_token(client: TestClient, librarian_credentials):
    return login(client, "staff", librarian_credentials["email"], librarian_credentials["password"])


@pytest.fixture
def librarian_headers(librarian_token):
    return {"Authorization": f"Bearer {librarian_token}"}


# ======================================================
# MEMBER FIXTURES
# ======================================================
@pytest.fixture(scope="session")
def member_credentials():
    creds = {"email": "member_test@example.com", "password": "member123"}
    creds["id"] = ensure_member(creds["email"], creds["password"])
    return creds


@pytest.fixture
def member_token(client: TestClient, member_credentials):
    return login(client, "member", member_credentials["email"], member_credentials["password"])


@pytest.fixture
def member_headers(member_token):
    return {"Authorization": f"Bearer {member_token}"}


@pytest.fixture(scope="session")
def other_member_credentials():
    creds = {"email": "other_member@example.com", "password": "other123"}
    creds["id"] = ensure_member(creds["email"], creds["password"], first_name="Other")
    return creds


# ======================================================
# TELEMETRY FIXTURES
# ======================================================
@pytest.fixture
def telemetry_collection():
    """
    Sustituye el sink de Mongo por uno sobre una colección en memoria.
    """
    collection = FakeCollection()
    sink = TelemetrySink(collection)
    app.dependency_overrides[get_telemetry_sink] = lambda: sink
    try:
        yield collection
    finally:
        app.dependency_overrides.pop(get_telemetry_sink, None)


# ======================================================
# FACTORIES (para crear usuarios desde los tests)
# ======================================================
@pytest.fixture
def make_member():
    def factory(password: str = "Password123!", first_name: str = "Member", last_name: str = "Test") -> dict:
        email = unique_email("member")
        member_id = ensure_member(email, password, first_name=first_name, last_name=last_name)
        return {"id": member_id, "email": email, "password": password}

    return factory


@pytest.fixture
def make_staff():
    def factory(role: UserRole = UserRole.LIBRARIAN, is_active: bool = True, password: str = "Password123!") -> dict:
        email = unique_email("staff")
        staff_id = ensure_staff(email, password, role=role, is_active=is_active)
        return {"id": staff_id, "email": email, "password": password}

    return factory


@pytest.fixture
def login_as(client: TestClient):
    def do_login(kind: str, credentials: dict) -> dict:
        token = login(client, kind, credentials["email"], credentials["password"])
        return {"Authorization": f"Bearer {token}"}

    return do_login
