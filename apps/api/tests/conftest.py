"""
Test configuration and fixtures.

Provides:
- Settings pointing at a per-test SQLite database (no PostgreSQL needed)
- Engine and session built the same way the app and CLI build them
- HTTPX AsyncClient over the application factory
"""
from pathlib import Path
from typing import AsyncGenerator, Generator

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session

from app.core.config import DatabasePaths, Settings, resolve_paths
from app.core.migrations import get_alembic_config
from app.db.base import Base
from app.db.session import create_engine_with_settings, create_session_factory
from app.main import create_app

# apps/api: holds app/ and alembic/
API_ROOT = Path(__file__).resolve().parents[1]

TEST_JWT_SECRET = "test-secret-key-for-unit-tests-only"


def make_settings(database_url: str, **overrides) -> Settings:
    """Settings isolated from the developer's environment and .env file."""
    values = {
        "NODE_ENV": "test",
        "DATABASE_URL": database_url,
        "JWT_SECRET": TEST_JWT_SECRET,
        "JWT_EXPIRATION": "15m",
        "BCRYPT_ROUNDS": 4,
        "ADMIN_PASSWORD": None,
        "SEED_SAMPLE_ACCOUNTS": None,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


# =============================================================================
# Configuration
# =============================================================================

@pytest.fixture(scope="function")
def database_url(tmp_path: Path) -> str:
    return f"sqlite:///{tmp_path / 'uems-test.db'}"


@pytest.fixture(scope="function")
def settings(database_url: str) -> Settings:
    return make_settings(database_url)


@pytest.fixture(scope="function")
def paths() -> DatabasePaths:
    return resolve_paths("test", API_ROOT)


@pytest.fixture(scope="function")
def alembic_config(settings: Settings, paths: DatabasePaths):
    return get_alembic_config(settings, paths)


# =============================================================================
# Database Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def engine(settings: Settings) -> Generator[Engine, None, None]:
    """Engine on an empty database (no tables)."""
    engine = create_engine_with_settings(settings)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db(engine: Engine) -> Generator[Session, None, None]:
    """
    Session on a database created from the ORM metadata.

    Each test gets its own SQLite file, so services may commit freely.
    """
    Base.metadata.create_all(engine)
    session = create_session_factory(engine)()
    yield session
    session.close()


# =============================================================================
# Client Fixtures
# =============================================================================

@pytest.fixture(scope="function")
def app(settings: Settings, engine: Engine):
    return create_app(settings, engine=engine, workdir=API_ROOT)


@pytest.fixture(scope="function")
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """
    Create unauthenticated AsyncClient for testing public endpoints.
    """
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test"
    ) as c:
        yield c
