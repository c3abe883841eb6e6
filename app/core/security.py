import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import settings
from app.schemas.auth import UserRole

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

ALGORITHM = "HS256"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(
    principal_id: int,
    role: UserRole,
    expires_delta: Optional[timedelta] = None,
) -> str:
    if expires_delta is None:
        expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    now = datetime.now(timezone.utc)

    to_encode = {
        "sub": str(principal_id),
        "role": UserRole(role).value,
        "iat": now,
        "exp": now + expires_delta,
        # jti: identifica el token para poder revocarlo en logout
        "jti": uuid.uuid4().hex,
    }

    return jwt.encode(to_encode, settings.JWT_SECRET, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    """
    Decodifica el JWT y normaliza el sujeto como int.

    Devuelve un dict con al menos principal_id (int), role (UserRole) y jti,
    o None si el token es inválido, expiró o trae datos que no cuadran.
    """
    try:
        payload = jwt.decode(token, settings.JWT_SECRET, algorithms=[ALGORITHM])
    except JWTError:
        return None

    try:
        principal_id = int(payload.get("sub"))
        role = UserRole(payload.get("role"))
    except (TypeError, ValueError):
        return None

    normalized = dict(payload)
    normalized["principal_id"] = principal_id
    normalized["role"] = role
    return normalized
