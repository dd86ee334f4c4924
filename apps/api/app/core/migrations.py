"""Database migration utilities: status checks, batch upgrade and revert."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable

from alembic import command
from alembic.config import Config
from alembic.runtime.migration import MigrationContext
from alembic.script import ScriptDirectory
from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection, Engine

from app.core.config import DatabasePaths, Settings

logger = logging.getLogger(__name__)

ALEMBIC_VERSION_TABLE = "alembic_version"
MIGRATION_LOCK_ID = 9823417


@dataclass(frozen=True)
class MigrationStatus:
    current_heads: tuple[str, ...]
    head_revisions: tuple[str, ...]
    is_up_to_date: bool


class MigrationError(RuntimeError):
    """Raised when a migration batch fails; the whole batch has been rolled back."""


def get_alembic_config(settings: Settings, paths: DatabasePaths) -> Config:
    """Build the Alembic config for the resolved source or compiled layout."""
    if not paths.migrations_dir.is_dir():
        raise FileNotFoundError(f"Migrations directory not found at {paths.migrations_dir}")
    config = Config()
    config.set_main_option("script_location", str(paths.migrations_dir))
    config.set_main_option("sqlalchemy.url", settings.database_url.replace("%", "%%"))
    if paths.sourceless:
        config.set_main_option("sourceless", "true")
    return config


def _tuple_or_empty(values: Iterable[str] | None) -> tuple[str, ...]:
    if not values:
        return ()
    return tuple(values)


def _current_heads(connection: Connection) -> tuple[str, ...]:
    inspector = inspect(connection)
    if ALEMBIC_VERSION_TABLE not in inspector.get_table_names():
        return ()

    context = MigrationContext.configure(connection)
    return _tuple_or_empty(context.get_current_heads())


def get_migration_status(engine: Engine, config: Config) -> MigrationStatus:
    script = ScriptDirectory.from_config(config)
    head_revisions = _tuple_or_empty(script.get_heads())

    with engine.connect() as connection:
        current_heads = _current_heads(connection)

    is_up_to_date = set(current_heads) == set(head_revisions)
    return MigrationStatus(
        current_heads=current_heads,
        head_revisions=head_revisions,
        is_up_to_date=is_up_to_date,
    )


def _pending_revisions(
    script: ScriptDirectory, current_heads: tuple[str, ...], target: str
) -> list[str]:
    applied: set[str] = set()
    if current_heads:
        applied = {rev.revision for rev in script.iterate_revisions(current_heads, "base")}
    wanted = [rev.revision for rev in script.iterate_revisions(target, "base")]
    # iterate_revisions walks newest -> oldest; pending runs oldest first.
    return [revision for revision in reversed(wanted) if revision not in applied]


def pending_migrations(engine: Engine, config: Config, target: str = "heads") -> list[str]:
    """Revisions not yet recorded in the version table, in application order."""
    script = ScriptDirectory.from_config(config)
    with engine.connect() as connection:
        current_heads = _current_heads(connection)
    return _pending_revisions(script, current_heads, target)


def run_migrations(engine: Engine, config: Config, target: str = "heads") -> list[str]:
    """
    Apply every pending revision up to ``target`` as one all-or-nothing batch.

    The batch shares a single transaction with the version-table updates, so a
    failing step leaves neither schema changes nor history behind. Running
    again after success applies nothing.

    Returns:
        Applied revision ids, oldest first

    Raises:
        MigrationError: any step failed (batch rolled back)
    """
    script = ScriptDirectory.from_config(config)
    try:
        with engine.begin() as connection:
            _acquire_advisory_lock(connection)
            # Read history under the lock so a racing bootstrap sees our result.
            pending = _pending_revisions(script, _current_heads(connection), target)
            if not pending:
                logger.info("No pending migrations")
                return []

            logger.info("Applying %d migration(s): %s", len(pending), ", ".join(pending))
            config.attributes["connection"] = connection
            command.upgrade(config, target)
    except MigrationError:
        raise
    except Exception as exc:
        logger.exception("Migration batch failed; rolled back")
        raise MigrationError(f"Migration failed: {exc}") from exc
    finally:
        config.attributes.pop("connection", None)

    return pending


def revert_migration(engine: Engine, config: Config) -> str | None:
    """
    Revert the most recently applied revision.

    Returns:
        The reverted revision id, or None when nothing is applied
    """
    try:
        with engine.begin() as connection:
            _acquire_advisory_lock(connection)
            current_heads = _current_heads(connection)
            if not current_heads:
                logger.info("No applied migrations to revert")
                return None

            config.attributes["connection"] = connection
            command.downgrade(config, "-1")
    except Exception as exc:
        logger.exception("Migration revert failed; rolled back")
        raise MigrationError(f"Revert failed: {exc}") from exc
    finally:
        config.attributes.pop("connection", None)

    return current_heads[0]


def _acquire_advisory_lock(connection: Connection) -> None:
    if connection.dialect.name != "postgresql":
        return
    # Transaction-scoped: released on commit or rollback.
    connection.execute(
        text("SELECT pg_advisory_xact_lock(:lock_id)"),
        {"lock_id": MIGRATION_LOCK_ID},
    )
