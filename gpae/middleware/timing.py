# gpae/middleware/timing.py
"""
Request timing middleware: request log line, X-Process-Time header and
HTTP Prometheus metrics.
"""

from collections.abc import Awaitable, Callable
import logging
import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from ..monitoring.prometheus_metrics import prometheus_metrics

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 500.0
UNTIMED_PATHS = frozenset({"/metrics"})


def _endpoint_label(request: Request) -> str:
    # Route template keeps label cardinality bounded (/reservations/{reservation_id})
    route = request.scope.get("route")
    return getattr(route, "path", None) or "unmatched"


class TimingMiddleware(BaseHTTPMiddleware):
    """
    Middleware to measure and log request processing time.
    """

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        if request.url.path in UNTIMED_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        elapsed = time.perf_counter() - start_time
        process_time = elapsed * 1000

        response.headers["X-Process-Time"] = f"{process_time:.2f}ms"
        prometheus_metrics.record_http_request(
            request.method, _endpoint_label(request), elapsed, response.status_code
        )

        logger.info(
            f"{request.method} {request.url.path} -> {response.status_code} ({process_time:.1f}ms)"
        )
        if process_time > SLOW_REQUEST_MS:
            logger.warning(
                f"Slow request: {request.method} {request.url.path} took {process_time:.2f}ms"
            )
        return response
