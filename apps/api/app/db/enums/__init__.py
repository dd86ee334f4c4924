"""Enum definitions for application constants."""

from app.db.enums.auth import Role
from app.db.enums.crm import ActivityType

__all__ = ["ActivityType", "Role"]
