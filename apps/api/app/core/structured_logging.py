"""Structured logging helpers (credential-safe)."""

import logging
from typing import Any

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

REDACTED_VALUE = "[REDACTED]"
SENSITIVE_FIELDS = frozenset(
    {
        "password",
        "token",
        "secret",
        "apiKey",
        "api_key",
        "refreshToken",
        "refresh_token",
    }
)


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging for the API process and the CLI."""
    logging.basicConfig(
        level=level.upper(),
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
    )


def redact_sensitive(body: Any) -> Any:
    """
    Return a copy of a request body with credential fields masked.

    Only top-level keys are inspected; the input is never modified.
    Non-dict bodies are returned unchanged.
    """
    if not isinstance(body, dict):
        return body
    sanitized = dict(body)
    for field in SENSITIVE_FIELDS:
        if sanitized.get(field):
            sanitized[field] = REDACTED_VALUE
    return sanitized


def build_log_context(
    *,
    user_id: str | None = None,
    username: str | None = None,
    request_id: str | None = None,
    route: str | None = None,
    method: str | None = None,
) -> dict[str, Any]:
    """Return a log context dict with only the provided fields."""
    context: dict[str, Any] = {}
    if user_id:
        context["user_id"] = user_id
    if username:
        context["username"] = username
    if request_id:
        context["request_id"] = request_id
    if route:
        context["route"] = route
    if method:
        context["method"] = method
    return context
