"""Request logging middleware (credential-safe)."""

import json
import logging
import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from app.core.structured_logging import build_log_context, redact_sensitive

logger = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"


async def _redacted_body(request: Request):
    if JSON_CONTENT_TYPE not in request.headers.get("content-type", ""):
        return None
    raw = await request.body()
    if not raw:
        return None
    try:
        return redact_sensitive(json.loads(raw))
    except ValueError:
        return "<unparseable JSON body>"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log method, path, user agent, status and duration of every request.

    With ``log_bodies`` (development only) the JSON body is logged too,
    after ``redact_sensitive`` has masked credential fields.
    """

    def __init__(self, app, log_bodies: bool = False):
        super().__init__(app)
        self.log_bodies = log_bodies

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        start_time = time.perf_counter()
        context = build_log_context(
            request_id=request.headers.get("x-request-id"),
            route=request.url.path,
            method=request.method,
        )
        user_agent = request.headers.get("user-agent", "")
        context["user_agent"] = user_agent
        if self.log_bodies:
            body = await _redacted_body(request)
            if body is not None:
                context["body"] = body
                logger.info(
                    "%s %s - %s - Body: %s",
                    request.method,
                    request.url.path,
                    user_agent,
                    json.dumps(body, default=str),
                    extra=context,
                )

        try:
            response = await call_next(request)
        except Exception:
            logger.exception(
                "%s %s failed - %s",
                request.method,
                request.url.path,
                user_agent,
                extra={**context, "duration_ms": _elapsed_ms(start_time)},
            )
            raise

        duration_ms = _elapsed_ms(start_time)
        logger.info(
            "%s %s %s - %s - %.2fms",
            request.method,
            request.url.path,
            response.status_code,
            user_agent,
            duration_ms,
            extra={**context, "status_code": response.status_code, "duration_ms": duration_ms},
        )
        return response


def _elapsed_ms(start_time: float) -> float:
    return round((time.perf_counter() - start_time) * 1000, 2)
