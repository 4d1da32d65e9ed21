"""
============================================================================
Lights HTTP v1.0.0
Middleware Layer - Request Correlation and Instrumentation
============================================================================
"""

from lights_http.middleware.correlation import CorrelationMiddleware, get_request_context
from lights_http.middleware.instrumentation import InstrumentationMiddleware, route_label

__all__ = [
    "CorrelationMiddleware",
    "InstrumentationMiddleware",
    "get_request_context",
    "route_label",
]
