from dataclasses import dataclass
from enum import Enum
from functools import wraps
from typing import Any, Callable, Optional, Union

from app.client.session_store import LIBRARIAN_ROLE_TAG, SessionStore
from app.schemas.auth import UserRole


class GuardState(str, Enum):
    ALLOWED = "allowed"
    DENIED_REDIRECT = "denied-redirect"


LOGIN_ROUTES = {
    UserRole.MEMBER: "/login",
    UserRole.LIBRARIAN: "/librarian-login",
}


@dataclass(frozen=True)
class GuardDecision:
    state: GuardState
    redirect_to: Optional[str] = None

    @property
    def allowed(self) -> bool:
        return self.state == GuardState.ALLOWED


class AuthGuard:
    """
    Guard de una zona protegida ("member" o "librarian").

    check() lee el store en cada llamada; no guarda el resultado, así que
    un logout hecho en otro proceso se nota en la siguiente comprobación.
    """

    def __init__(self, role: Union[UserRole, str], store: SessionStore):
        role = UserRole(role)
        if role not in LOGIN_ROUTES:
            raise ValueError(f"no guarded area for role {role.value!r}")
        self.role = role
        self._store = store

    @property
    def login_route(self) -> str:
        return LOGIN_ROUTES[self.role]

    def check(self) -> GuardDecision:
        session = self._store.get()
        token_present = session is not None
        role_tag = session.role_tag if session is not None else None

        if token_present and (self.role != UserRole.LIBRARIAN or role_tag == LIBRARIAN_ROLE_TAG):
            return GuardDecision(GuardState.ALLOWED)
        return GuardDecision(GuardState.DENIED_REDIRECT, self.login_route)

    def protect(self, view: Callable[..., Any]) -> Callable[..., Any]:
        """
        Decora una vista: si el guard deniega, devuelve la GuardDecision
        en vez de llamar a la vista.
        """
        @wraps(view)
        def guarded(*args: Any, **kwargs: Any) -> Any:
            decision = self.check()
            if not decision.allowed:
                return decision
            return view(*args, **kwargs)

        return guarded
