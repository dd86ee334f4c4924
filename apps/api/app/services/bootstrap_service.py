"""Bootstrap service - migrations followed by baseline seeding.

Steps run strictly in order and stop at the first failure: the migration
batch must commit before any account is seeded.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable

from sqlalchemy import text
from sqlalchemy.engine import Engine

from app.core.config import DatabasePaths, Settings
from app.core.migrations import get_alembic_config, run_migrations
from app.db.session import create_session_factory
from app.services.seed_service import SeedResult, seed_default_accounts

logger = logging.getLogger(__name__)

Echo = Callable[[str], None]


@dataclass
class BootstrapResult:
    applied_migrations: list[str] = field(default_factory=list)
    seed: SeedResult = field(default_factory=SeedResult)


def _noop(_message: str) -> None:
    return None


def check_connection(engine: Engine) -> None:
    """Open a connection and run a trivial query; raises on failure."""
    with engine.connect() as conn:
        conn.execute(text("SELECT 1"))


def run_bootstrap(
    engine: Engine,
    settings: Settings,
    paths: DatabasePaths,
    echo: Echo | None = None,
    *,
    include_samples: bool | None = None,
) -> BootstrapResult:
    """
    Connect, apply pending migrations, then ensure the default accounts.

    ``echo`` receives human-readable progress lines (the CLI passes
    ``click.echo``). Credentials are never passed to ``echo`` or the log;
    callers read them from ``result.seed.credentials``.

    Raises:
        MigrationError: the migration batch failed and was rolled back
        FileNotFoundError: the migrations directory is missing
    """
    echo = echo or _noop
    result = BootstrapResult()

    echo("Connecting to database...")
    check_connection(engine)
    echo("✓ Database connection established")

    config = get_alembic_config(settings, paths)
    echo("Running pending migrations...")
    result.applied_migrations = run_migrations(engine, config)
    if result.applied_migrations:
        for revision in result.applied_migrations:
            echo(f"  ✓ {revision}")
        echo(f"✓ Applied {len(result.applied_migrations)} migration(s)")
    else:
        echo("✓ Database schema is up to date")

    echo("Seeding default accounts...")
    session_factory = create_session_factory(engine)
    with session_factory() as db:
        result.seed = seed_default_accounts(db, settings, include_samples=include_samples)
    for username in result.seed.created:
        echo(f"  ✓ Created {username}")
    for username in result.seed.skipped:
        echo(f"  - {username} already exists")

    logger.info(
        "Bootstrap complete",
        extra={
            "migrations_applied": len(result.applied_migrations),
            "accounts_created": len(result.seed.created),
        },
    )
    return result
