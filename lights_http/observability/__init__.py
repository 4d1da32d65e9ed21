"""
============================================================================
Lights HTTP v1.0.0
Observability Module - Prometheus Metrics
============================================================================
"""

from lights_http.observability.metrics import (
    MetricsSink,
    PrometheusMetricsSink,
    RESULT_ERROR,
    RESULT_SUCCESS,
    UNMATCHED_ROUTE,
    start_metrics_server,
    status_class,
)

__all__ = [
    "MetricsSink",
    "PrometheusMetricsSink",
    "RESULT_ERROR",
    "RESULT_SUCCESS",
    "UNMATCHED_ROUTE",
    "start_metrics_server",
    "status_class",
]
