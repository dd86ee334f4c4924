"""CLI tools for database bootstrap and maintenance.

Examples:
    python -m app.cli bootstrap
    python -m app.cli migrate --env production --workdir /srv/uems
    python -m app.cli seed --without-samples
"""

import glob
from pathlib import Path

import click

from app.core.config import DatabasePaths, Settings, load_settings, resolve_paths
from app.core.errors import ConfigurationError
from app.core.migrations import (
    MigrationError,
    get_alembic_config,
    get_migration_status,
    pending_migrations,
    revert_migration,
    run_migrations,
)
from app.core.structured_logging import configure_logging
from app.db.session import create_engine_with_settings, create_session_factory
from app.services.bootstrap_service import BootstrapResult, check_connection, run_bootstrap
from app.services.seed_service import SeedResult, seed_default_accounts


def _load(env: str | None, workdir: str | None) -> tuple[Settings, DatabasePaths]:
    overrides = {"NODE_ENV": env} if env else {}
    try:
        settings = load_settings(**overrides)
    except ConfigurationError as e:
        click.echo(f"❌ Configuration error: {e.message}")
        raise SystemExit(1)
    configure_logging(settings.LOG_LEVEL)
    paths = resolve_paths(settings.NODE_ENV, workdir or Path.cwd())
    return settings, paths


def _print_credentials(seed: SeedResult) -> None:
    if not seed.credentials:
        return
    click.echo()
    click.echo("Default credentials (shown once, change them after first login):")
    for username, password in seed.credentials.items():
        click.echo(f"  {username} / {password}")


def _env_option(func):
    return click.option(
        "--env",
        default=None,
        help="Environment name (overrides NODE_ENV): development, test, production...",
    )(func)


def _workdir_option(func):
    return click.option(
        "--workdir",
        default=None,
        type=click.Path(file_okay=False),
        help="Project root holding app/ and alembic/ (or dist/); defaults to the current directory",
    )(func)


@click.group()
def cli():
    """UEMS database tools."""
    pass


@cli.command()
@_env_option
@_workdir_option
@click.option(
    "--with-samples/--without-samples",
    default=None,
    help="Seed the sample role accounts (default: SEED_SAMPLE_ACCOUNTS policy)",
)
def bootstrap(env: str | None, workdir: str | None, with_samples: bool | None):
    """
    Run pending migrations, then ensure the default accounts exist.

    Safe to run repeatedly: applied migrations and existing accounts are
    skipped. Exits with status 1 on any failure.
    """
    settings, paths = _load(env, workdir)
    click.echo(f"Environment: {settings.NODE_ENV}")
    engine = create_engine_with_settings(settings)
    try:
        result: BootstrapResult = run_bootstrap(
            engine, settings, paths, click.echo, include_samples=with_samples
        )
    except MigrationError as e:
        click.echo(f"❌ Migration failed, all changes rolled back: {e}")
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        engine.dispose()

    _print_credentials(result.seed)
    click.echo("✓ Bootstrap complete")


@cli.command()
@_env_option
@_workdir_option
def migrate(env: str | None, workdir: str | None):
    """Apply pending migrations as a single all-or-nothing batch."""
    settings, paths = _load(env, workdir)
    engine = create_engine_with_settings(settings)
    try:
        config = get_alembic_config(settings, paths)
        applied = run_migrations(engine, config)
    except MigrationError as e:
        click.echo(f"❌ Migration failed, all changes rolled back: {e}")
        raise SystemExit(1)
    except Exception as e:
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        engine.dispose()

    for revision in applied:
        click.echo(f"  ✓ {revision}")
    if applied:
        click.echo(f"✓ Applied {len(applied)} migration(s)")
    else:
        click.echo("✓ Database schema is up to date")


@cli.command(name="revert-migration")
@_env_option
@_workdir_option
def revert_migration_command(env: str | None, workdir: str | None):
    """Revert the most recently applied migration."""
    settings, paths = _load(env, workdir)
    engine = create_engine_with_settings(settings)
    try:
        config = get_alembic_config(settings, paths)
        reverted = revert_migration(engine, config)
    except Exception as e:
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        engine.dispose()

    if reverted:
        click.echo(f"✓ Reverted {reverted}")
    else:
        click.echo("✓ No applied migrations to revert")


@cli.command()
@_env_option
@_workdir_option
@click.option(
    "--with-samples/--without-samples",
    default=None,
    help="Seed the sample role accounts (default: SEED_SAMPLE_ACCOUNTS policy)",
)
def seed(env: str | None, workdir: str | None, with_samples: bool | None):
    """
    Ensure the default accounts exist (migrations must already be applied).
    """
    settings, paths = _load(env, workdir)
    engine = create_engine_with_settings(settings)
    session_factory = create_session_factory(engine)
    db = session_factory()
    try:
        config = get_alembic_config(settings, paths)
        if not get_migration_status(engine, config).is_up_to_date:
            click.echo("❌ Pending migrations; run `migrate` or `bootstrap` first")
            raise SystemExit(1)
        result = seed_default_accounts(db, settings, include_samples=with_samples)
    except Exception as e:
        db.rollback()
        click.echo(f"❌ Error: {e}")
        raise SystemExit(1)
    finally:
        db.close()
        engine.dispose()

    for username in result.created:
        click.echo(f"  ✓ Created {username}")
    for username in result.skipped:
        click.echo(f"  - {username} already exists")
    _print_credentials(result)
    click.echo("✓ Seeding complete")


@cli.command(name="check-config")
@_env_option
@_workdir_option
@click.option("--ping", is_flag=True, help="Also open a database connection and report migration status")
def check_config(env: str | None, workdir: str | None, ping: bool):
    """
    Show the resolved environment, file layout and the files it matches.

    Exits with status 1 when the migrations directory or the entity
    modules cannot be found.
    """
    settings, paths = _load(env, workdir)
    entity_files = sorted(glob.glob(paths.entities_pattern))
    migration_files = sorted(glob.glob(paths.migrations_pattern))

    click.echo(f"Environment: {settings.NODE_ENV}")
    click.echo(f"Layout: {'compiled (dist/)' if paths.sourceless else 'source'}")
    click.echo(f"Root: {paths.root}")
    click.echo(f"Entities pattern: {paths.entities_pattern}")
    for path in entity_files:
        click.echo(f"  {Path(path).name}")
    click.echo(f"Migrations pattern: {paths.migrations_pattern}")
    for path in migration_files:
        click.echo(f"  {Path(path).name}")

    ok = True
    if not paths.migrations_dir.is_dir():
        click.echo(f"❌ Migrations directory not found: {paths.migrations_dir}")
        ok = False
    if not entity_files:
        click.echo(f"❌ No entity modules match {paths.entities_pattern}")
        ok = False
    if not ok:
        raise SystemExit(1)

    if ping:
        engine = create_engine_with_settings(settings)
        try:
            check_connection(engine)
            config = get_alembic_config(settings, paths)
            pending = pending_migrations(engine, config)
        except Exception as e:
            click.echo(f"❌ Database check failed: {e}")
            raise SystemExit(1)
        finally:
            engine.dispose()
        click.echo("✓ Database connection established")
        click.echo(f"Pending migrations: {len(pending)}")

    click.echo("✓ Configuration OK")


if __name__ == "__main__":
    cli()
