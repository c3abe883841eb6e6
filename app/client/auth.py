from typing import Optional

from app.client.api_client import ApiClient
from app.client.session_store import Session, SessionStore


def login_member(client: ApiClient, store: SessionStore, email: str, password: str) -> Optional[Session]:
    """Login de member: la cookie queda en el cliente y la sesión en el store."""
    data = client.post("/api/auth/login/member", json={"email": email, "password": password})
    store.set(data["member"])
    return store.get()


def login_staff(client: ApiClient, store: SessionStore, email: str, password: str) -> Optional[Session]:
    data = client.post("/api/auth/login/staff", json={"email": email, "password": password})
    store.set(data["staff"])
    return store.get()


def logout(client: ApiClient, store: SessionStore) -> None:
    # La sesión local se borra aunque el servidor responda con error
    try:
        client.post("/api/auth/logout")
    finally:
        store.clear()
