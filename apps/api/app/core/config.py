"""Application configuration with environment variables."""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL, make_url

from app.core.errors import ConfigurationError

DEVELOPMENT_ENVS = ("development", "test")
MIN_PRODUCTION_SECRET_LENGTH = 32

_DURATION_RE = re.compile(r"^\s*(\d+)\s*([smhd]?)\s*$")
_DURATION_UNITS = {"": 1, "s": 1, "m": 60, "h": 3600, "d": 86400}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # Environment
    NODE_ENV: str = "development"

    # App Version
    VERSION: str = "1.0.0"

    # Database (composed into a postgresql+psycopg URL unless DATABASE_URL is set)
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "uems_user"
    POSTGRES_PASSWORD: str | None = None
    POSTGRES_DB: str = "uems_db"
    DATABASE_URL: str | None = None

    # Connection pool
    DB_POOL_MAX: int = 10
    DB_POOL_MIN: int = 2
    DB_CONNECTION_TIMEOUT: int = 30000  # milliseconds

    # Session Token
    JWT_SECRET: str | None = None
    JWT_EXPIRATION: str = "15m"

    # Password hashing cost
    BCRYPT_ROUNDS: int = 12

    # Bootstrap
    ADMIN_PASSWORD: str | None = None
    SEED_SAMPLE_ACCOUNTS: bool | None = None  # None: on in development, off elsewhere

    LOG_LEVEL: str = "INFO"

    @property
    def is_development(self) -> bool:
        return self.NODE_ENV in DEVELOPMENT_ENVS

    @property
    def is_production(self) -> bool:
        return self.NODE_ENV == "production"

    @property
    def database_url(self) -> str:
        """Explicit DATABASE_URL, or a PostgreSQL URL built from POSTGRES_* variables."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        url = URL.create(
            "postgresql+psycopg",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            database=self.POSTGRES_DB,
        )
        return url.render_as_string(hide_password=False)

    @property
    def jwt_expiration_seconds(self) -> int:
        return parse_duration(self.JWT_EXPIRATION)

    @property
    def seed_sample_accounts(self) -> bool:
        if self.SEED_SAMPLE_ACCOUNTS is None:
            return self.is_development
        return self.SEED_SAMPLE_ACCOUNTS

    def engine_options(self) -> dict[str, Any]:
        """
        Keyword arguments for ``sqlalchemy.create_engine``.

        Pool bounds only apply to server databases; SQLite (used by the test
        suite) keeps SQLAlchemy's default pool.
        """
        options: dict[str, Any] = {"pool_pre_ping": True}
        backend = make_url(self.database_url).get_backend_name()
        if not backend.startswith("postgresql"):
            return options

        timeout_seconds = self.DB_CONNECTION_TIMEOUT / 1000
        options.update(
            pool_size=self.DB_POOL_MIN,
            max_overflow=self.DB_POOL_MAX - self.DB_POOL_MIN,
            pool_timeout=timeout_seconds,
        )
        connect_args: dict[str, Any] = {
            "connect_timeout": max(1, math.ceil(timeout_seconds)),
            "options": "-c timezone=utc",
        }
        if self.is_production:
            connect_args["sslmode"] = "require"
        options["connect_args"] = connect_args
        return options


@dataclass(frozen=True)
class DatabasePaths:
    """File layout for ORM entity modules and migration revisions."""

    root: Path
    entities_pattern: str
    migrations_dir: Path
    migrations_pattern: str
    sourceless: bool


def resolve_paths(env: str, workdir: str | Path) -> DatabasePaths:
    """
    Pick the source or compiled layout for an environment.

    Development and test run straight from the source tree. Every other
    environment runs from ``dist/``, a byte-compiled copy of the tree
    (``python -m compileall -b``) that ships without ``.py`` sources.
    """
    workdir = Path(workdir).resolve()
    if env in DEVELOPMENT_ENVS:
        root = workdir
        suffix = "py"
        sourceless = False
    else:
        root = workdir / "dist"
        suffix = "pyc"
        sourceless = True

    migrations_dir = root / "alembic"
    return DatabasePaths(
        root=root,
        entities_pattern=str(root / "app" / "db" / "models" / f"*.{suffix}"),
        migrations_dir=migrations_dir,
        migrations_pattern=str(migrations_dir / "versions" / f"*.{suffix}"),
        sourceless=sourceless,
    )


def parse_duration(value: str | int) -> int:
    """Parse ``"15m"``-style durations (s, m, h, d) or plain seconds."""
    if isinstance(value, int):
        return value
    match = _DURATION_RE.match(value)
    if not match:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return int(amount) * _DURATION_UNITS[unit]


def validate_settings(settings: Settings) -> Settings:
    """
    Fail fast on unusable configuration.

    Raises:
        ConfigurationError: missing or weak JWT secret, bad pool bounds,
            or an unparseable token expiration
    """
    secret = (settings.JWT_SECRET or "").strip()
    if not secret:
        raise ConfigurationError("JWT_SECRET is not defined in environment variables")
    if settings.is_production and len(secret) < MIN_PRODUCTION_SECRET_LENGTH:
        raise ConfigurationError(
            f"JWT_SECRET must be at least {MIN_PRODUCTION_SECRET_LENGTH} characters in production"
        )

    if settings.DB_POOL_MIN < 0 or settings.DB_POOL_MAX < 1:
        raise ConfigurationError("DB_POOL_MIN must be >= 0 and DB_POOL_MAX must be >= 1")
    if settings.DB_POOL_MIN > settings.DB_POOL_MAX:
        raise ConfigurationError("DB_POOL_MIN cannot exceed DB_POOL_MAX")
    if settings.DB_CONNECTION_TIMEOUT <= 0:
        raise ConfigurationError("DB_CONNECTION_TIMEOUT must be a positive number of milliseconds")

    try:
        parse_duration(settings.JWT_EXPIRATION)
    except ValueError as exc:
        raise ConfigurationError(f"JWT_EXPIRATION is invalid: {exc}") from exc

    return settings


def load_settings(**overrides: Any) -> Settings:
    """Load settings from the environment and validate them. Never connects."""
    try:
        settings = Settings(**overrides)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid configuration: {exc}") from exc
    return validate_settings(settings)
