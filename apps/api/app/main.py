"""FastAPI application factory.

Run with ``uvicorn app.main:create_app --factory``. Settings are loaded and
validated when the app is built, so a missing JWT_SECRET fails startup
before any database connection is attempted.
"""

import logging
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

from app.core.config import Settings, load_settings, resolve_paths
from app.core.errors import AppError
from app.core.migrations import get_alembic_config, get_migration_status
from app.core.request_logging import RequestLoggingMiddleware
from app.core.structured_logging import configure_logging
from app.db.session import create_engine_with_settings, create_session_factory

logger = logging.getLogger(__name__)


async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.__class__.__name__, "details": exc.details},
    )


async def pool_timeout_handler(request: Request, exc: PoolTimeoutError) -> JSONResponse:
    # Pool exhaustion is fatal for the request; the client may retry later.
    logger.error("Database pool checkout timed out", extra={"route": request.url.path})
    return JSONResponse(
        status_code=503,
        content={"detail": "Database unavailable", "code": "DatabaseTimeout"},
    )


def create_app(
    settings: Settings | None = None,
    *,
    engine: Engine | None = None,
    workdir: str | Path | None = None,
) -> FastAPI:
    """
    Build the application with explicitly constructed database state.

    ``app.state`` carries ``settings``, ``engine`` and ``session_factory``;
    request handlers get sessions through ``app.core.deps.get_db``.
    """
    settings = settings or load_settings()
    configure_logging(settings.LOG_LEVEL)

    owns_engine = engine is None
    engine = engine or create_engine_with_settings(settings)
    paths = resolve_paths(settings.NODE_ENV, workdir or Path.cwd())

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info("API starting", extra={"env": settings.NODE_ENV, "version": settings.VERSION})
        yield
        if owns_engine:
            engine.dispose()

    app = FastAPI(
        title="UEMS API",
        version=settings.VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = create_session_factory(engine)

    app.add_exception_handler(AppError, app_error_handler)
    app.add_exception_handler(PoolTimeoutError, pool_timeout_handler)
    app.add_middleware(RequestLoggingMiddleware, log_bodies=settings.is_development)

    # ============================================================================
    # Health Check
    # ============================================================================

    @app.get("/health")
    def health():
        """Liveness probe: the process is up. Does not touch the database."""
        return {"status": "ok", "env": settings.NODE_ENV, "version": settings.VERSION}

    @app.get("/readyz")
    def readyz():
        """
        Readiness probe.

        Verifies database connectivity and that no migrations are pending.
        """
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as exc:
            logger.warning("Readiness check failed: database unreachable (%s)", exc)
            return JSONResponse(
                status_code=503,
                content={"status": "unavailable", "database": "unreachable"},
            )

        try:
            status = get_migration_status(engine, get_alembic_config(settings, paths))
        except FileNotFoundError:
            return JSONResponse(
                status_code=503,
                content={"status": "unavailable", "database": "ok", "migrations": "missing"},
            )

        body = {
            "status": "ok" if status.is_up_to_date else "unavailable",
            "database": "ok",
            "migrations": "up_to_date" if status.is_up_to_date else "pending",
            "current": list(status.current_heads),
            "heads": list(status.head_revisions),
        }
        return JSONResponse(status_code=200 if status.is_up_to_date else 503, content=body)

    return app
