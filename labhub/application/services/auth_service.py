"""Auth service: JWT verification and first sign-in registration.

The OAuth handshake happens upstream; this service only mints and verifies
the bearer tokens that carry the user id, and records users on first sign-in.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import structlog
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from labhub.config import get_settings
from labhub.domain.models.user import User, UserRole
from labhub.domain.schemas.auth import Caller

logger = structlog.get_logger(__name__)


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    settings = get_settings()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.JWT_EXPIRATION_MINUTES)
    )
    to_encode = {"sub": user.id, "email": user.email, "exp": expire}
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    settings = get_settings()
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None


def caller_from_token(db: Session, token: str) -> Optional[Caller]:
    """Resolve a token to a Caller; the role always comes from the database."""
    payload = decode_access_token(token)
    if payload is None or not payload.get("sub"):
        return None
    user = db.get(User, payload["sub"])
    if user is None:
        return None
    return Caller(id=user.id, role=user.role, email=user.email)


def role_for_email(email: str) -> UserRole:
    if email.lower() in get_settings().admin_emails:
        return UserRole.ADMIN
    return UserRole.USER


def get_user_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == email).first()


def register_sign_in(db: Session, email: str, name: Optional[str] = None, image: Optional[str] = None) -> User:
    """Create the user on first sign-in; later sign-ins return the stored user unchanged."""
    user = get_user_by_email(db, email)
    if user is not None:
        return user

    user = User(email=email, name=name, image=image, role=role_for_email(email))
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("User registered", user_id=user.id, role=user.role.value)
    return user
