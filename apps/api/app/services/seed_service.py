"""Seed service - baseline accounts created after migrations.

Each account follows the same check-then-create rule: look the username up
inside the transaction that would insert it, create it when absent, and
never touch an existing row. On PostgreSQL a transaction-scoped advisory
lock serializes concurrent bootstraps; the unique username/email indexes
are the final guard.
"""

import logging
import secrets
from dataclasses import dataclass, field

from sqlalchemy import select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.security import hash_password
from app.db.enums import Role
from app.db.models import User
from app.db.models.users import RESERVED_ADMIN_USERNAME

logger = logging.getLogger(__name__)

SEED_LOCK_ID = 9823418

ADMIN_EMAIL = "admin@uems.local"
# Demo-only credentials; production bootstraps use ADMIN_PASSWORD or a generated one.
DEFAULT_ADMIN_PASSWORD = "AdminAdmin@123"


@dataclass(frozen=True)
class SeedAccount:
    username: str
    email: str
    password: str
    first_name: str
    last_name: str
    role: Role


@dataclass
class SeedResult:
    created: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    # username -> plaintext password, only for accounts created in this run
    credentials: dict[str, str] = field(default_factory=dict)


def admin_account(settings: Settings) -> SeedAccount:
    """The reserved administrator identity."""
    if settings.ADMIN_PASSWORD:
        password = settings.ADMIN_PASSWORD
    elif settings.is_development:
        password = DEFAULT_ADMIN_PASSWORD
    else:
        password = secrets.token_urlsafe(18)
    return SeedAccount(
        username=RESERVED_ADMIN_USERNAME,
        email=ADMIN_EMAIL,
        password=password,
        first_name="System",
        last_name="Administrator",
        role=Role.ADMIN,
    )


def sample_accounts() -> list[SeedAccount]:
    """Demo role accounts for local environments."""
    return [
        SeedAccount(
            username="hrmanager",
            email="hr@uems.com",
            password="HR@123456",
            first_name="HR",
            last_name="Manager",
            role=Role.HR_MANAGER,
        ),
        SeedAccount(
            username="salesuser",
            email="sales@uems.com",
            password="Sales@123456",
            first_name="Sales",
            last_name="User",
            role=Role.SALES_USER,
        ),
    ]


def ensure_account(db: Session, account: SeedAccount, bcrypt_rounds: int = 12) -> tuple[User, bool]:
    """
    Create ``account`` unless its username already exists.

    Returns:
        (user, created) - ``created`` is False when the row already existed,
        including when a concurrent bootstrap inserted it first
    """
    _acquire_seed_lock(db)
    existing = db.scalars(select(User).where(User.username == account.username)).first()
    if existing is not None:
        # Nothing written; ending the transaction releases the advisory lock.
        db.commit()
        return existing, False

    user = User(
        username=account.username,
        email=account.email,
        password=hash_password(account.password, bcrypt_rounds),
        first_name=account.first_name,
        last_name=account.last_name,
        role=account.role.value,
        is_active=True,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        logger.warning("Seed account %s was created concurrently", account.username)
        winner = db.scalars(select(User).where(User.username == account.username)).first()
        if winner is None:
            # Conflict on email with a differently named user.
            raise
        return winner, False
    return user, True


def seed_default_accounts(
    db: Session,
    settings: Settings,
    *,
    include_samples: bool | None = None,
) -> SeedResult:
    """
    Ensure the admin account (and, per policy, the sample accounts) exist.

    ``include_samples`` overrides the SEED_SAMPLE_ACCOUNTS policy.
    """
    if include_samples is None:
        include_samples = settings.seed_sample_accounts

    accounts = [admin_account(settings)]
    if include_samples:
        accounts.extend(sample_accounts())

    result = SeedResult()
    for account in accounts:
        user, created = ensure_account(db, account, settings.BCRYPT_ROUNDS)
        if created:
            result.created.append(user.username)
            result.credentials[user.username] = account.password
            logger.info("Seed account created", extra={"username": user.username, "role": user.role})
        else:
            result.skipped.append(user.username)
            logger.info("Seed account already exists", extra={"username": user.username})
    return result


def _acquire_seed_lock(db: Session) -> None:
    if db.get_bind().dialect.name != "postgresql":
        return
    db.execute(text("SELECT pg_advisory_xact_lock(:lock_id)"), {"lock_id": SEED_LOCK_ID})
