"""
Logging middleware for request/response logging.

Logs all HTTP requests with timing and feeds the request metrics.
"""
import time
import uuid

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from authrelay.routes.metrics import track_request

logger = structlog.get_logger()


def _endpoint_label(request: Request) -> str:
    """Route template for metric labels; unmatched paths share one series."""
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to log all HTTP requests with timing and context.

    Adds: request_id, route, method, duration_ms, status to every log.
    Query strings are never logged; callbacks carry authorization codes.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        request_logger = logger.bind(
            route=request.url.path,
            method=request.method,
        )

        try:
            response = await call_next(request)
        except Exception as e:
            duration = time.perf_counter() - start_time
            request_logger.error(
                "request_failed",
                status_code=500,
                duration_ms=round(duration * 1000, 2),
                error=str(e)
            )
            track_request(request.method, _endpoint_label(request), 500, duration)
            raise

        duration = time.perf_counter() - start_time

        request_logger.info(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round(duration * 1000, 2)
        )
        track_request(request.method, _endpoint_label(request), response.status_code, duration)

        response.headers["X-Request-ID"] = request_id
        return response
