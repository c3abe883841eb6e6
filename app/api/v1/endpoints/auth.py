import logging

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from sqlalchemy.orm import Session

from app.api.v1.dependencies import get_db
from app.api.v1.dependencies_auth import (
    ACCESS_TOKEN_COOKIE,
    get_current_principal,
    require_staff,
)
from app.core.config import settings
from app.core.security import create_access_token, verify_password
from app.db.models import Librarian, Member
from app.schemas.auth import LoginRequest, LoginResponse, Principal, StaffRead, UserRole
from app.schemas.member import MemberRead

logger = logging.getLogger("api.auth")

router = APIRouter(
    prefix="/api/auth",
    tags=["auth"],
)


def _require_credentials(payload: LoginRequest) -> None:
    if not payload.email or not payload.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email and password are required.",
        )


def _login_failed(request: Request, email: str, operation: str) -> HTTPException:
    logger.warning(
        "login_failed",
        extra={
            "operation": operation,
            "resource": "auth",
            "email": email,
            "status_code": 401,
            "ip": request.client.host if request.client else None,
        },
    )
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Invalid email or password.",
    )


def _issue_token(response: Response, principal_id: int, role: UserRole) -> str:
    token = create_access_token(principal_id=principal_id, role=role)
    response.set_cookie(
        ACCESS_TOKEN_COOKIE,
        token,
        httponly=True,
        samesite="lax",
        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
    )
    return token


@router.post("/login/member", response_model=LoginResponse, response_model_exclude_none=True)
def login_member(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    _require_credentials(payload)

    member = db.query(Member).filter(Member.email == payload.email).first()
    if not member or not verify_password(payload.password, member.hashed_password):
        raise _login_failed(request, payload.email, "auth_login_member")

    token = _issue_token(response, member.id, UserRole.MEMBER)

    logger.info(
        "login_success",
        extra={
            "operation": "auth_login_member",
            "resource": "auth",
            "member_id": member.id,
            "status_code": 200,
        },
    )
    return LoginResponse(access_token=token, member=MemberRead.model_validate(member))


@router.post("/login/staff", response_model=LoginResponse, response_model_exclude_none=True)
def login_staff(
    payload: LoginRequest,
    request: Request,
    response: Response,
    db: Session = Depends(get_db),
):
    _require_credentials(payload)

    staff = db.query(Librarian).filter(Librarian.email == payload.email).first()
    if not staff or not verify_password(payload.password, staff.hashed_password):
        raise _login_failed(request, payload.email, "auth_login_staff")

    if not staff.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Staff account is inactive",
        )

    token = _issue_token(response, staff.id, staff.role)

    logger.info(
        "login_success",
        extra={
            "operation": "auth_login_staff",
            "resource": "auth",
            "staff_id": staff.id,
            "role": staff.role.value,
            "status_code": 200,
        },
    )
    return LoginResponse(access_token=token, staff=StaffRead.model_validate(staff))


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
def logout(
    request: Request,
    principal: Principal = Depends(get_current_principal),
):
    """
    Logout: revoca el token actual y borra la cookie.
    """
    if not hasattr(request.app.state, "revoked_tokens"):
        request.app.state.revoked_tokens = set()

    jti = getattr(request.state, "token_jti", None)
    if jti:
        request.app.state.revoked_tokens.add(jti)

    logger.info(
        "logout_success",
        extra={
            "operation": "auth_logout",
            "resource": "auth",
            "status_code": 204,
        },
    )

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    response.delete_cookie(ACCESS_TOKEN_COOKIE)
    return response


@router.get("/me", response_model=Principal)
def me(principal: Principal = Depends(get_current_principal)):
    return principal


@router.get("/staff/check")
def staff_check(principal: Principal = Depends(require_staff)):
    return {"status": "ok", "role": principal.role.value}
