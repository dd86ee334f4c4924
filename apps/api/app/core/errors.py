"""Domain errors shared by services, the CLI and the web app."""

from typing import Any


class AppError(Exception):
    """Base class for application errors."""

    status_code = 500

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(AppError):
    """Missing or unsafe configuration. Raised before any connection is made."""


class NotFoundError(AppError):
    """Requested entity does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(
            f"{entity} #{entity_id} not found",
            {"entity": entity, "id": str(entity_id)},
        )


class ConstraintViolation(AppError):
    """Uniqueness or referential conflict (duplicate username/email, bad foreign key)."""

    status_code = 409
