"""
Sesión del lado cliente.

Una sola clave canónica (`city_archive_session`) guarda el registro
`{id, email, role, ...}`. El "role tag" que usan los guards se deriva de
esa sesión; no se guarda aparte.

Las claves antiguas (`city_archive_member_session`, `token`, `adminToken`,
`role`) solo se leen en `migrate_legacy()` y después se borran.
"""
import json
import logging
import re
from typing import Any, Annotated, Literal, Mapping, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError

from app.client.storage import Storage

logger = logging.getLogger("client.session")

SESSION_KEY = "city_archive_session"

LEGACY_MEMBER_SESSION_KEY = "city_archive_member_session"
LEGACY_KEYS = (LEGACY_MEMBER_SESSION_KEY, "token", "adminToken", "role")

LIBRARIAN_ROLE_TAG = "librarian"

# solo dígitos ASCII: nada de "1_000" ni dígitos unicode
_NUMERIC_ID = re.compile(r"-?[0-9]+")


class MemberSession(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    role: Literal["member"]
    id: int
    email: Optional[str] = None

    @property
    def role_tag(self) -> Optional[str]:
        return None


class StaffSession(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    # admin es un librarian con más permisos
    role: Literal["librarian", "admin"]
    id: int
    email: Optional[str] = None

    @property
    def role_tag(self) -> Optional[str]:
        return LIBRARIAN_ROLE_TAG


Session = Annotated[Union[MemberSession, StaffSession], Field(discriminator="role")]

_session_adapter = TypeAdapter(Session)


def normalize_id(value: Any) -> int:
    """
    Convierte un id entero o string numérico a int.
    Lanza TypeError / ValueError si no se puede.
    """
    if isinstance(value, bool):
        raise TypeError("id must be an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        text = value.strip()
        if not _NUMERIC_ID.fullmatch(text):
            raise ValueError(f"id is not a numeric string: {value!r}")
        return int(text)
    raise TypeError(f"id must be an integer or numeric string, got {type(value).__name__}")


def parse_session(data: Any) -> Optional[Session]:
    """Valida un registro ya decodificado; None si no sirve como sesión."""
    if not isinstance(data, Mapping):
        return None

    record = dict(data)
    # El registro antiguo de member no traía role
    if record.get("role") is None:
        record["role"] = "member"

    try:
        record["id"] = normalize_id(record.get("id"))
        return _session_adapter.validate_python(record)
    except (TypeError, ValueError, ValidationError):
        return None


class SessionStore:
    def __init__(self, storage: Storage, key: str = SESSION_KEY):
        self._storage = storage
        self._key = key

    def get(self) -> Optional[Session]:
        raw = self._storage.get_item(self._key)
        if raw is None:
            return None

        try:
            data = json.loads(raw)
        except ValueError:
            return None

        return parse_session(data)

    def set(self, candidate: Union[Session, Mapping[str, Any]]) -> None:
        if isinstance(candidate, BaseModel):
            record = candidate.model_dump()
        else:
            record = dict(candidate)

        try:
            record["id"] = normalize_id(record.get("id"))
        except (TypeError, ValueError):
            # Se guarda tal cual: no perder datos por un id raro
            logger.warning("session_id_not_normalized", extra={"session_id": repr(record.get("id"))})

        self._storage.set_item(self._key, json.dumps(record, ensure_ascii=False, default=str))

    def clear(self) -> None:
        self._storage.remove_item(self._key)

    def is_authenticated(self) -> bool:
        return self.get() is not None

    def role_tag(self) -> Optional[str]:
        session = self.get()
        return session.role_tag if session is not None else None

    def migrate_legacy(self) -> bool:
        """
        Pasa el registro antiguo de member a la clave canónica (si todavía
        no hay sesión) y borra todas las claves antiguas.

        Los tokens sueltos (`token`, `adminToken`, `role`) no traen identidad,
        así que no se migran: solo se eliminan.
        Devuelve True si se migró una sesión.
        """
        migrated = False

        if self.get() is None:
            raw = self._storage.get_item(LEGACY_MEMBER_SESSION_KEY)
            data = None
            if raw is not None:
                try:
                    data = json.loads(raw)
                except ValueError:
                    data = None

            if isinstance(data, Mapping):
                record = dict(data)
                record["role"] = "member"
                if parse_session(record) is not None:
                    self.set(record)
                    migrated = True

        for key in LEGACY_KEYS:
            self._storage.remove_item(key)

        if migrated:
            logger.info("legacy_session_migrated", extra={"key": LEGACY_MEMBER_SESSION_KEY})
        return migrated
