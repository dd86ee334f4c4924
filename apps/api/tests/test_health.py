"""Tests for health checks and domain error mapping."""

import uuid

from fastapi import Depends
from sqlalchemy import func, select
from sqlalchemy.exc import TimeoutError as PoolTimeoutError
from sqlalchemy.orm import Session

from app.core.config import Settings
from app.core.deps import get_db, get_settings
from app.core.errors import ConstraintViolation, NotFoundError
from app.core.migrations import run_migrations
from app.db.models import User


async def test_health_returns_ok(client):
    response = await client.get("/health")

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "ok"
    assert body["env"] == "test"
    assert "version" in body


async def test_readyz_reports_pending_migrations(client):
    response = await client.get("/readyz")

    assert response.status_code == 503
    body = response.json()
    assert body["database"] == "ok"
    assert body["migrations"] == "pending"


async def test_readyz_ok_after_migrations(client, engine, alembic_config):
    run_migrations(engine, alembic_config)

    response = await client.get("/readyz")

    assert response.status_code == 200
    assert response.json()["migrations"] == "up_to_date"


async def test_not_found_maps_to_404(app, client):
    missing = uuid.uuid4()

    @app.get("/contacts-error")
    def raise_error():
        raise NotFoundError("Contact", missing)

    response = await client.get("/contacts-error")

    assert response.status_code == 404
    body = response.json()
    assert body["detail"] == f"Contact #{missing} not found"
    assert body["code"] == "NotFoundError"


async def test_constraint_violation_maps_to_409(app, client):
    @app.get("/conflict-error")
    def raise_error():
        raise ConstraintViolation("A user with this email already exists", {"field": "email"})

    response = await client.get("/conflict-error")

    assert response.status_code == 409
    assert response.json()["details"] == {"field": "email"}


async def test_pool_timeout_maps_to_503(app, client):
    @app.get("/pool-error")
    def raise_error():
        raise PoolTimeoutError("QueuePool limit reached")

    response = await client.get("/pool-error")

    assert response.status_code == 503
    assert response.json()["code"] == "DatabaseTimeout"


async def test_dependencies_use_app_state(app, client, db):
    seed = User(
        username="alice",
        email="alice@acme.com",
        password="hash",
        first_name="Alice",
        last_name="Smith",
    )
    db.add(seed)
    db.commit()

    @app.get("/users-count")
    def count_users(session: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
        count = session.scalar(select(func.count()).select_from(User))
        return {"count": count, "env": settings.NODE_ENV}

    response = await client.get("/users-count")

    assert response.status_code == 200
    assert response.json() == {"count": 1, "env": "test"}
