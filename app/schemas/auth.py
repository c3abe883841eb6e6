from enum import Enum
from typing import Optional

from pydantic import BaseModel

from app.schemas.member import MemberRead


class UserRole(str, Enum):
    MEMBER = "member"
    LIBRARIAN = "librarian"
    ADMIN = "admin"


class LoginRequest(BaseModel):
    # Opcionales para devolver 400 con mensaje propio en vez de 422
    email: Optional[str] = None
    password: Optional[str] = None


class StaffRead(BaseModel):
    id: int
    first_name: str
    last_name: str
    email: str
    role: UserRole

    class Config:
        from_attributes = True


class LoginResponse(BaseModel):
    status: str = "ok"
    access_token: str
    token_type: str = "bearer"
    member: Optional[MemberRead] = None
    staff: Optional[StaffRead] = None


class Principal(BaseModel):
    """Identidad autenticada de la petición actual (member o staff)."""

    id: int
    email: str
    role: UserRole

    @property
    def is_staff(self) -> bool:
        return self.role in (UserRole.LIBRARIAN, UserRole.ADMIN)
