"""
Request logging middleware.

Provides:
- Request ID generation for correlation (``X-Request-ID`` response header)
- request_id / method / path bound to structlog contextvars for the request
- One ``request_completed`` line per request with status and timing
"""

from __future__ import annotations

import time
import uuid
from typing import Optional

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from shared.logging import get_logger

log = get_logger("4wheeler.request")

REQUEST_ID_HEADER = "X-Request-ID"


def generate_request_id() -> str:
    """Generate a unique request ID for correlation."""
    return f"req_{uuid.uuid4().hex[:12]}"


def log_request_end(method: str, path: str, status_code: int, duration_ms: int) -> None:
    """Log the end of a request at a level picked from the status code."""
    if status_code >= 500:
        log_fn = log.error
    elif status_code >= 400:
        log_fn = log.warning
    else:
        log_fn = log.info

    log_fn(
        "request_completed",
        method=method,
        path=path,
        status_code=status_code,
        duration_ms=duration_ms,
    )


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = generate_request_id()
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        start = time.perf_counter()
        response: Optional[Response] = None
        try:
            response = await call_next(request)
        finally:
            duration_ms = int((time.perf_counter() - start) * 1000)
            # An exception escaping the app is answered as 500 by the outer
            # error handler
            status_code = response.status_code if response is not None else 500
            log_request_end(request.method, request.url.path, status_code, duration_ms)

        response.headers[REQUEST_ID_HEADER] = request_id
        structlog.contextvars.clear_contextvars()
        return response
