from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.security import hash_password
from app.db.models import Librarian
from app.schemas.auth import UserRole


def ensure_builtin_admin(db: Session) -> None:
    admin = db.query(Librarian).filter(Librarian.email == settings.BUILTIN_ADMIN_EMAIL).first()
    if admin:
        return

    admin = Librarian(
        first_name="Built-in",
        last_name="Admin",
        email=settings.BUILTIN_ADMIN_EMAIL,
        hashed_password=hash_password(settings.BUILTIN_ADMIN_PASSWORD),
        role=UserRole.ADMIN,
        is_active=True,
    )
    db.add(admin)
    db.commit()
