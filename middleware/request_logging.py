"""
Request logging middleware.

Provides:
- Request ID generation for correlation (echoed as X-Request-ID)
- Request/response logging with timing
- Request context bound into structlog contextvars so every log line
  emitted while handling the request carries it
"""

from __future__ import annotations

import time
import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from shared.logging import get_logger, hash_ip

log = get_logger("website_stats.request")

_PROXY_IP_HEADERS = ("CF-Connecting-IP", "X-Forwarded-For", "X-Real-IP")


def generate_request_id() -> str:
    """Generate a unique request ID for correlation."""
    return f"req_{uuid.uuid4().hex[:12]}"


def get_client_ip(request: Request) -> str:
    """Resolve the client IP, preferring proxy headers over the socket peer."""
    for header in _PROXY_IP_HEADERS:
        value = request.headers.get(header)
        if value:
            client_ip = value.split(",")[0].strip()
            if client_ip:
                return client_ip
    return request.client.host if request.client else ""


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = generate_request_id()
        started = time.perf_counter()

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            ip_hash=hash_ip(get_client_ip(request)),
        )

        log.debug(
            "request_started",
            query_string=request.url.query or None,
            user_agent=request.headers.get("User-Agent", "")[:100],
        )

        response = await call_next(request)

        duration_ms = int((time.perf_counter() - started) * 1000)
        if response.status_code >= 500:
            log_fn = log.error
        elif response.status_code >= 400:
            log_fn = log.warning
        else:
            log_fn = log.info
        log_fn(
            "request_completed",
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        response.headers["X-Request-ID"] = request_id
        return response
