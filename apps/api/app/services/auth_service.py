"""Auth service - local (username/email + password) login, registration, tokens."""

import logging
from uuid import UUID

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.errors import ConstraintViolation, NotFoundError
from app.core.security import create_access_token, hash_password, verify_password
from app.db.enums import Role
from app.db.models import User
from app.db.models.users import RESERVED_ADMIN_USERNAME
from app.schemas.auth import RegisterRequest, TokenResponse, UserRead

logger = logging.getLogger(__name__)


def get_user_by_username(db: Session, username: str) -> User | None:
    return db.scalars(select(User).where(User.username == username)).first()


def get_user_by_login(db: Session, login: str) -> User | None:
    """Find a user by username or (case-insensitive) email."""
    stmt = select(User).where(
        or_(User.username == login, func.lower(User.email) == login.lower())
    )
    return db.scalars(stmt).first()


def get_user(db: Session, user_id: UUID) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def authenticate(db: Session, login: str, password: str) -> User | None:
    """
    Validate local credentials.

    Returns None for unknown users, wrong passwords and disabled accounts,
    so callers cannot tell which check failed.
    """
    user = get_user_by_login(db, login)
    if user is None or not verify_password(password, user.password):
        return None
    if not user.is_active:
        return None
    return user


def register_user(db: Session, data: RegisterRequest, settings: Settings) -> User:
    """
    Create a self-registered account with the default "user" role.

    Raises:
        ConstraintViolation: reserved username, or username/email already taken
    """
    if data.username.lower() == RESERVED_ADMIN_USERNAME.lower():
        raise ConstraintViolation(f"Username '{data.username}' is reserved")

    email = data.email.lower()
    existing = db.scalars(
        select(User).where(
            or_(User.username == data.username, func.lower(User.email) == email)
        )
    ).first()
    if existing is not None:
        field = "username" if existing.username == data.username else "email"
        raise ConstraintViolation(f"A user with this {field} already exists", {"field": field})

    user = User(
        username=data.username,
        email=email,
        password=hash_password(data.password, settings.BCRYPT_ROUNDS),
        first_name=data.first_name,
        last_name=data.last_name,
        role=Role.USER.value,
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race with a concurrent registration.
        db.rollback()
        raise ConstraintViolation("A user with this username or email already exists") from exc

    logger.info("User registered", extra={"user_id": str(user.id), "username": user.username})
    return user


def issue_token(settings: Settings, user: User) -> TokenResponse:
    """Build the login response for an authenticated user."""
    token = create_access_token(
        settings,
        user_id=str(user.id),
        username=user.username,
        role=user.role,
    )
    return TokenResponse(
        access_token=token,
        expires_in=settings.jwt_expiration_seconds,
        user=UserRead.model_validate(user),
    )


def login(db: Session, settings: Settings, username: str, password: str) -> TokenResponse | None:
    """Authenticate and issue a token; ``username`` may also be an email address."""
    user = authenticate(db, username, password)
    if user is None:
        return None
    return issue_token(settings, user)
