"""SQLAlchemy ORM models."""

from app.db.models.crm import Activity, Contact, Organization
from app.db.models.users import User

__all__ = ["Activity", "Contact", "Organization", "User"]
