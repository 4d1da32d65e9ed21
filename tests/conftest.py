"""
============================================================================
Lights HTTP v1.0.0
Shared Test Fixtures
============================================================================
"""

from datetime import datetime, timezone
from typing import List, Tuple
import time

import pytest

from lights_http.config import ServiceConfig
from lights_http.context import RequestContext
from lights_http.devices.registry import SimulatedDeviceRegistry
from lights_http.observability.metrics import MetricsSink


TEST_TOKEN = "test-token"


# =============================================================================
# Capturing metrics sink
# =============================================================================

class CapturingMetricsSink(MetricsSink):
    """MetricsSink that keeps every observation in memory."""

    def __init__(self) -> None:
        self.in_flight_count = 0
        self.max_in_flight = 0
        self.requests: List[Tuple[str, str, str, float]] = []
        self.operations: List[Tuple[str, str]] = []

    def inc_in_flight(self) -> None:
        self.in_flight_count += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight_count)

    def dec_in_flight(self) -> None:
        self.in_flight_count -= 1

    def observe_request(self, method, route, status_class, duration_seconds) -> None:
        self.requests.append((method, route, status_class, duration_seconds))

    def record_light_operation(self, operation, result) -> None:
        self.operations.append((operation, result))


class RecordingSleep:
    """Stand-in for asyncio.sleep that records requested delays."""

    def __init__(self) -> None:
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def config() -> ServiceConfig:
    return ServiceConfig(bearer_token=TEST_TOKEN, inter_device_delay_ms=0)


@pytest.fixture
def metrics() -> CapturingMetricsSink:
    return CapturingMetricsSink()


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def registry() -> SimulatedDeviceRegistry:
    return SimulatedDeviceRegistry(device_ids=["A", "B"], record_calls=True)


@pytest.fixture
def request_context() -> RequestContext:
    return RequestContext(
        correlation_id="0123456789abcdef0123456789abcdef",
        started_at=time.perf_counter(),
        started_at_utc=datetime.now(timezone.utc),
    )


@pytest.fixture
def auth_headers() -> dict:
    return {"Authorization": f"Bearer {TEST_TOKEN}"}
