from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from app.api.v1.dependencies import get_db
from app.core.logging import principal_id_ctx
from app.core.security import decode_access_token
from app.db.models import Librarian, Member
from app.schemas.auth import Principal, UserRole


ACCESS_TOKEN_COOKIE = "access_token"

# auto_error=False: el token también puede venir en la cookie
bearer_scheme = HTTPBearer(auto_error=False)


def extract_token(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials],
) -> Optional[str]:
    if credentials is not None and credentials.credentials:
        return credentials.credentials
    return request.cookies.get(ACCESS_TOKEN_COOKIE)


def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Principal:
    """
    Obtiene el member o staff actual a partir del JWT (header o cookie).
    Lanza 401 si no se puede validar.
    """
    token = extract_token(request, credentials)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access denied. No token provided.",
        )

    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid or expired token.",
    )

    payload = decode_access_token(token)
    if payload is None:
        raise credentials_exception

    revoked = getattr(request.app.state, "revoked_tokens", set())
    if payload.get("jti") in revoked:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token revoked",
        )

    principal_id = payload["principal_id"]

    if payload["role"] == UserRole.MEMBER:
        member = db.get(Member, principal_id)
        if member is None:
            raise credentials_exception
        principal = Principal(id=member.id, email=member.email, role=UserRole.MEMBER)
    else:
        staff = db.get(Librarian, principal_id)
        if staff is None:
            raise credentials_exception
        if not staff.is_active:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Staff account is inactive",
            )
        # El rol que manda es el de la BD, no el del token
        principal = Principal(id=staff.id, email=staff.email, role=staff.role)

    # Para logout y para el logging estructurado
    request.state.token_jti = payload.get("jti")
    principal_id_ctx.set(f"{principal.role.value}:{principal.id}")

    return principal


def require_role(required_role: UserRole):
    """
    Dependencia para exigir un rol.
    Admin siempre tiene acceso.
    """
    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role != required_role and principal.role != UserRole.ADMIN:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return principal

    return dependency


require_staff = require_role(UserRole.LIBRARIAN)


def ensure_self_or_staff(principal: Principal, member_id: int) -> None:
    if principal.is_staff:
        return
    if principal.id != member_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Insufficient permissions",
        )
