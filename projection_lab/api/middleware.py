"""Middleware for request logging, round-trip accounting and security headers."""

import logging
import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from projection_lab.core.config import get_settings
from projection_lab.core.metrics import observe_http_request
from projection_lab.core.request_context import (
    count_round_trips,
    new_request_id,
    request_id_context,
)
from projection_lab.core.structured_logging import log_json

logger = logging.getLogger(__name__)
settings = get_settings()

_MAX_REQUEST_ID_LENGTH = 128


def _resolve_request_id(request: Request) -> str:
    """Reuse a well-formed incoming correlation ID, or mint a new one."""
    incoming = request.headers.get("X-Request-ID") or request.headers.get("X-Correlation-ID")
    candidate = (incoming or "").strip()
    if (
        candidate
        and len(candidate) <= _MAX_REQUEST_ID_LENGTH
        and not any(ch in candidate for ch in "\r\n")
    ):
        return candidate
    return new_request_id()


def _route_template(request: Request) -> str:
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


def _level_for_status(status_code: int) -> int:
    if status_code >= 500:
        return logging.ERROR
    if status_code >= 400:
        return logging.WARNING
    return logging.INFO


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add basic security headers to all responses."""

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for header, value in (
            ("X-Content-Type-Options", "nosniff"),
            ("X-Frame-Options", "DENY"),
            ("Referrer-Policy", "no-referrer"),
        ):
            response.headers.setdefault(header, value)
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every request as one JSON line and account its database round trips.

    Each request runs inside its own round-trip counter. The count is logged,
    recorded in the ``projection_lab_db_round_trips`` histogram and returned in
    the configured response header (``X-DB-Round-Trips`` by default).
    """

    async def dispatch(self, request: Request, call_next):
        request_id = _resolve_request_id(request)
        request.state.request_id = request_id

        started = time.perf_counter()
        line = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": request.client.host if request.client else "unknown",
        }

        with request_id_context(request_id), count_round_trips() as round_trips:
            try:
                response = await call_next(request)
            except Exception as exc:
                log_json(
                    logger,
                    logging.ERROR,
                    "request_error",
                    status_code=500,
                    duration_ms=round((time.perf_counter() - started) * 1000, 2),
                    round_trips=round_trips.count,
                    error=str(exc),
                    exception=exc.__class__.__name__,
                    **line,
                )
                raise

            duration_ms = (time.perf_counter() - started) * 1000
            response.headers.setdefault("X-Request-ID", request_id)
            if settings.round_trip_header:
                response.headers[settings.round_trip_header] = str(round_trips.count)

            observe_http_request(
                method=request.method,
                route=_route_template(request),
                status_code=response.status_code,
                duration_ms=duration_ms,
                round_trips=round_trips.count,
            )
            log_json(
                logger,
                _level_for_status(response.status_code),
                "request",
                status_code=response.status_code,
                duration_ms=round(duration_ms, 2),
                round_trips=round_trips.count,
                **line,
            )
            return response
