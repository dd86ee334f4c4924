"""Tests for the migration runner and the username backfill revision."""

import shutil
import uuid
from pathlib import Path

import pytest
from sqlalchemy import inspect, text
from sqlalchemy.exc import IntegrityError

from app.core.config import DatabasePaths, resolve_paths
from app.core.migrations import (
    MigrationError,
    get_alembic_config,
    get_migration_status,
    pending_migrations,
    revert_migration,
    run_migrations,
)

INITIAL = "20241220_0900"
ADD_USERNAME = "20241226_0820"

BROKEN_REVISION = '''"""Broken revision used by the test suite."""

from alembic import op

revision = "20241231_2359"
down_revision = "20241226_0820"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.execute("UPDATE table_that_does_not_exist SET x = 1")


def downgrade() -> None:
    pass
'''


def _insert_legacy_user(conn, email: str, created_at: str) -> None:
    conn.execute(
        text(
            "INSERT INTO users (id, email, password, first_name, last_name, role, "
            "is_active, created_at, updated_at) "
            "VALUES (:id, :email, 'hash', 'Legacy', 'User', 'user', 1, :created_at, :created_at)"
        ),
        {"id": uuid.uuid4().hex, "email": email, "created_at": created_at},
    )


def test_pending_migrations_in_timestamp_order(engine, alembic_config):
    assert pending_migrations(engine, alembic_config) == [INITIAL, ADD_USERNAME]


def test_run_migrations_applies_each_revision_once(engine, alembic_config):
    applied = run_migrations(engine, alembic_config)

    assert applied == [INITIAL, ADD_USERNAME]
    tables = set(inspect(engine).get_table_names())
    assert {"users", "organizations", "contacts", "activities", "alembic_version"} <= tables

    # Second run is a no-op
    assert run_migrations(engine, alembic_config) == []
    assert pending_migrations(engine, alembic_config) == []

    status = get_migration_status(engine, alembic_config)
    assert status.is_up_to_date
    assert status.current_heads == (ADD_USERNAME,)


def test_migration_status_on_empty_database(engine, alembic_config):
    status = get_migration_status(engine, alembic_config)

    assert status.current_heads == ()
    assert status.head_revisions == (ADD_USERNAME,)
    assert not status.is_up_to_date


def test_username_backfill_is_unique_and_deterministic(engine, alembic_config):
    assert run_migrations(engine, alembic_config, target=INITIAL) == [INITIAL]

    with engine.begin() as conn:
        _insert_legacy_user(conn, "jane@acme.com", "2024-01-03 09:00:00")
        _insert_legacy_user(conn, "john@other.com", "2024-01-02 09:00:00")
        _insert_legacy_user(conn, "john@acme.com", "2024-01-01 09:00:00")

    assert run_migrations(engine, alembic_config) == [ADD_USERNAME]

    with engine.connect() as conn:
        usernames = dict(conn.execute(text("SELECT email, username FROM users")).all())

    # Oldest row keeps the plain name; later collisions get numeric suffixes
    assert usernames == {
        "john@acme.com": "user_john",
        "john@other.com": "user_john_2",
        "jane@acme.com": "user_jane",
    }


def test_username_is_required_and_unique_after_migration(engine, alembic_config):
    run_migrations(engine, alembic_config, target=INITIAL)
    with engine.begin() as conn:
        _insert_legacy_user(conn, "john@acme.com", "2024-01-01 09:00:00")
    run_migrations(engine, alembic_config)

    columns = {col["name"]: col for col in inspect(engine).get_columns("users")}
    assert columns["username"]["nullable"] is False
    indexes = {ix["name"]: ix for ix in inspect(engine).get_indexes("users")}
    assert indexes["ix_users_username"]["unique"]

    with pytest.raises(IntegrityError):
        with engine.begin() as conn:
            conn.execute(
                text(
                    "INSERT INTO users (id, username, email, password, first_name, last_name) "
                    "VALUES (:id, 'user_john', 'other@acme.com', 'hash', 'A', 'B')"
                ),
                {"id": uuid.uuid4().hex},
            )


def test_revert_migration_downgrades_latest_revision(engine, alembic_config):
    run_migrations(engine, alembic_config)

    assert revert_migration(engine, alembic_config) == ADD_USERNAME

    columns = {col["name"] for col in inspect(engine).get_columns("users")}
    assert "username" not in columns
    assert pending_migrations(engine, alembic_config) == [ADD_USERNAME]


def test_revert_migration_with_nothing_applied(engine, alembic_config):
    assert revert_migration(engine, alembic_config) is None


def _paths_with_broken_revision(tmp_path: Path) -> tuple[DatabasePaths, DatabasePaths]:
    source = resolve_paths("test", Path(__file__).resolve().parents[1])
    migrations_dir = tmp_path / "alembic"
    shutil.copytree(
        source.migrations_dir,
        migrations_dir,
        ignore=shutil.ignore_patterns("__pycache__"),
    )
    (migrations_dir / "versions" / "20241231_2359_broken.py").write_text(BROKEN_REVISION)
    paths = DatabasePaths(
        root=tmp_path,
        entities_pattern=source.entities_pattern,
        migrations_dir=migrations_dir,
        migrations_pattern=str(migrations_dir / "versions" / "*.py"),
        sourceless=False,
    )
    return source, paths


def test_failed_migration_raises_and_keeps_history(engine, settings, tmp_path: Path):
    source, paths = _paths_with_broken_revision(tmp_path)
    good_config = get_alembic_config(settings, source)
    run_migrations(engine, good_config)

    broken_config = get_alembic_config(settings, paths)
    with pytest.raises(MigrationError):
        run_migrations(engine, broken_config)

    # The failed revision was not recorded
    status = get_migration_status(engine, broken_config)
    assert status.current_heads == (ADD_USERNAME,)
    assert pending_migrations(engine, broken_config) == ["20241231_2359"]


def test_failed_batch_reverts_every_step_of_the_batch(engine, settings, tmp_path: Path):
    _, paths = _paths_with_broken_revision(tmp_path)
    config = get_alembic_config(settings, paths)

    with pytest.raises(MigrationError):
        run_migrations(engine, config)

    tables = inspect(engine).get_table_names()
    assert "users" not in tables
    assert "contacts" not in tables
    assert "alembic_version" not in tables
    assert pending_migrations(engine, config) == [INITIAL, ADD_USERNAME, "20241231_2359"]

    # Nothing was left behind, so the good revisions apply cleanly afterwards.
    source = resolve_paths("test", Path(__file__).resolve().parents[1])
    assert run_migrations(engine, get_alembic_config(settings, source)) == [INITIAL, ADD_USERNAME]


def test_missing_migrations_directory(settings, tmp_path: Path):
    paths = resolve_paths("production", tmp_path)

    with pytest.raises(FileNotFoundError):
        get_alembic_config(settings, paths)
