"""
Logging middleware for request/response tracking.
"""

import time
import uuid
from collections.abc import Callable

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from src.config import get_logger

logger = get_logger(__name__)

# Probes hit these every few seconds; keep them out of info logs
QUIET_PATHS = frozenset({"/health", "/api/health"})


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for request/response logging.

    Binds a short request ID into structlog's context so every log line
    emitted while handling the request carries it.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """Process request with logging."""
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())[:8]
        request.state.request_id = request_id
        structlog.contextvars.bind_contextvars(request_id=request_id)

        start = time.perf_counter()
        quiet = request.url.path in QUIET_PATHS
        log_start = logger.debug if quiet else logger.info
        log_start(
            "request_started",
            method=request.method,
            path=request.url.path,
            client=request.client.host if request.client else "unknown",
        )

        try:
            response = await call_next(request)
        except Exception as e:
            logger.error(
                "request_failed",
                method=request.method,
                path=request.url.path,
                error=str(e),
                duration_ms=round((time.perf_counter() - start) * 1000, 2),
            )
            raise
        finally:
            structlog.contextvars.unbind_contextvars("request_id")

        duration_ms = (time.perf_counter() - start) * 1000
        if response.status_code >= 500:
            log_done = logger.error
        elif response.status_code >= 400:
            log_done = logger.warning
        else:
            log_done = logger.debug if quiet else logger.info
        log_done(
            "request_completed",
            request_id=request_id,
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Response-Time"] = f"{duration_ms:.2f}ms"
        return response
