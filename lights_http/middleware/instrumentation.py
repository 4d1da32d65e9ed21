"""
============================================================================
Lights HTTP v1.0.0
Instrumentation Middleware - Timing, Counts and In-Flight Gauge
============================================================================

Wraps every call regardless of outcome:
- perf_counter start/end pair -> request duration histogram
- request count keyed by method, route template and status class
- in-flight gauge held through MetricsSink.in_flight(), released on every
  exit path (authentication rejection, validation error, exception)

Purely observational: the response passes through untouched.

============================================================================
"""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp

from lights_http.observability.metrics import MetricsSink, UNMATCHED_ROUTE, status_class


def route_label(request: Request) -> str:
    """Route template for a matched request, UNMATCHED_ROUTE otherwise."""
    route = request.scope.get("route")
    path = getattr(route, "path", None)
    return path if path else UNMATCHED_ROUTE


class InstrumentationMiddleware(BaseHTTPMiddleware):

    def __init__(self, app: ASGIApp, metrics: MetricsSink) -> None:
        super().__init__(app)
        self._metrics = metrics

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        # Stays 500 if the inner stages raise
        status_code = 500
        with self._metrics.in_flight():
            try:
                response = await call_next(request)
                status_code = response.status_code
                return response
            finally:
                self._metrics.observe_request(
                    request.method,
                    route_label(request),
                    status_class(status_code),
                    time.perf_counter() - start,
                )
