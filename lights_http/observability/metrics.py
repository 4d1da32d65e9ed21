"""
============================================================================
Lights HTTP v1.0.0
Prometheus Metrics - Request and Light Operation Observability
============================================================================

Side Effects: Updates the injected Prometheus registry

METRICS EXPOSED
---------------
- lights_http_requests_total{method,route,status_class}: Counter of requests
- lights_http_request_duration_seconds{method,route}: Request latency
- lights_http_requests_in_flight: Requests currently being served
- lights_operations_total{operation,result}: Fan-out operations by result

The sink is passed explicitly to the instrumentation middleware and the
fan-out executor. Each PrometheusMetricsSink owns its metric objects on
its own CollectorRegistry, so tests can build as many as they need.

Metric failures are logged and swallowed: instrumentation must never
change a response.

============================================================================
"""

from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Iterator, Optional
import logging

from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    start_http_server,
)

# Configure module logger
logger = logging.getLogger(__name__)


# Label used for requests that matched no route
UNMATCHED_ROUTE = "unmatched"

RESULT_SUCCESS = "success"
RESULT_ERROR = "error"


def status_class(status_code: int) -> str:
    """Collapse an HTTP status code to its class label, e.g. 404 -> "4xx"."""
    return f"{status_code // 100}xx"


# ============================================================================
# SINK INTERFACE
# ============================================================================

class MetricsSink(ABC):
    """
    Destination for request and operation metrics.

    Implementations must make inc_in_flight/dec_in_flight safe to call
    from concurrent requests.
    """

    @abstractmethod
    def inc_in_flight(self) -> None:
        ...

    @abstractmethod
    def dec_in_flight(self) -> None:
        ...

    @abstractmethod
    def observe_request(
        self,
        method: str,
        route: str,
        status_class: str,
        duration_seconds: float,
    ) -> None:
        ...

    @abstractmethod
    def record_light_operation(self, operation: str, result: str) -> None:
        ...

    @contextmanager
    def in_flight(self) -> Iterator[None]:
        """Hold one in-flight slot for the duration of the block."""
        self.inc_in_flight()
        try:
            yield
        finally:
            self.dec_in_flight()


# ============================================================================
# PROMETHEUS SINK
# ============================================================================

class PrometheusMetricsSink(MetricsSink):
    """
    MetricsSink backed by prometheus_client.

    Reliability Level: L5 High
    Input Constraints: None
    Side Effects: Registers four collectors on `registry`
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None) -> None:
        self.registry = registry if registry is not None else CollectorRegistry()

        self.requests_total = Counter(
            "lights_http_requests_total",
            "Total number of HTTP requests",
            ["method", "route", "status_class"],
            registry=self.registry,
        )
        self.request_duration = Histogram(
            "lights_http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "route"],
            registry=self.registry,
        )
        self.requests_in_flight = Gauge(
            "lights_http_requests_in_flight",
            "Number of HTTP requests currently being served",
            registry=self.registry,
        )
        self.light_operations_total = Counter(
            "lights_operations_total",
            "Total number of light control operations",
            ["operation", "result"],
            registry=self.registry,
        )

    def inc_in_flight(self) -> None:
        try:
            self.requests_in_flight.inc()
        except Exception as e:
            logger.error(f"[OBS-001] Failed to increment in-flight gauge | error={e}")

    def dec_in_flight(self) -> None:
        try:
            self.requests_in_flight.dec()
        except Exception as e:
            logger.error(f"[OBS-002] Failed to decrement in-flight gauge | error={e}")

    def observe_request(
        self,
        method: str,
        route: str,
        status_class: str,
        duration_seconds: float,
    ) -> None:
        try:
            self.requests_total.labels(
                method=method, route=route, status_class=status_class
            ).inc()
            self.request_duration.labels(method=method, route=route).observe(
                duration_seconds
            )
        except Exception as e:
            logger.error(f"[OBS-003] Failed to record request metrics | error={e}")

    def record_light_operation(self, operation: str, result: str) -> None:
        try:
            self.light_operations_total.labels(operation=operation, result=result).inc()
        except Exception as e:
            logger.error(f"[OBS-004] Failed to record light operation | error={e}")


def start_metrics_server(port: int, host: str, registry: CollectorRegistry) -> None:
    """Serve `registry` on http://host:port/metrics from a daemon thread."""
    logger.info(f"[LIGHTS-METRICS] Starting metrics server | addr={host}:{port}")
    start_http_server(port, addr=host, registry=registry)
