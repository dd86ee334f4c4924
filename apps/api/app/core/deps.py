"""FastAPI dependencies for database access."""

from typing import Generator

from fastapi import Request
from sqlalchemy.orm import Session

from app.core.config import Settings


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Database session dependency.

    Yields a session from the factory built in ``create_app`` and ensures
    it's closed after the request.
    """
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()
