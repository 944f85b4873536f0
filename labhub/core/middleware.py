"""
Middleware configuration for the application.
Binds per-request log context and times each request.
"""

import time
from typing import Callable

import structlog
from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

logger = structlog.get_logger(__name__)


def _elapsed_ms(start: float) -> float:
    return round((time.perf_counter() - start) * 1000, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Binds method and path for every log line in the request, then logs the outcome."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(method=request.method, path=request.url.path)
        multipart = request.headers.get("content-type", "").startswith("multipart/")
        start = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Request failed", duration_ms=_elapsed_ms(start))
            raise

        log = logger.warning if response.status_code >= 500 else logger.info
        log(
            "Request handled",
            status_code=response.status_code,
            duration_ms=_elapsed_ms(start),
            multipart=multipart,
            client_ip=request.client.host if request.client else None,
        )
        return response


def setup_middleware(app):
    """Install request logging inside the correlation id middleware."""
    # Added first so it runs innermost, after the request id is set
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        CorrelationIdMiddleware,
        header_name="X-Request-ID",
        update_request_header=True,
    )
