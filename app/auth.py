from dataclasses import dataclass

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.config import get_settings
from app.infrastructure.db.models import User, Profile

# pbkdf2_sha256: pure-python, no native backend
pwd_context = CryptContext(schemes=["pbkdf2_sha256"])


@dataclass(frozen=True)
class AuthUser:
    """Caller identity handed to the store gateway and resolvers."""
    id: str
    email: str
    is_admin: bool = False


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(User.email == email.strip().lower()).first()


def to_auth_user(user: User) -> AuthUser:
    return AuthUser(id=user.id, email=user.email, is_admin=bool(user.is_admin))


def is_super_admin(caller: AuthUser | None) -> bool:
    """Admin claim: is_admin role, or an address on the legacy allowlist."""
    if caller is None:
        return False
    if caller.is_admin:
        return True
    return caller.email.lower() in get_settings().super_admin_emails()


def register_user(
    db: Session,
    email: str,
    password: str,
    name: str | None = None,
    is_admin: bool = False,
) -> User:
    """Create a user together with an empty profile (reads as free plan)."""
    user = User(
        email=email.strip().lower(),
        password_hash=hash_password(password),
        name=name,
        is_admin=is_admin,
    )
    db.add(user)
    db.flush()
    db.add(Profile(id=user.id))
    db.commit()
    return user
