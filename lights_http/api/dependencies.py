"""
============================================================================
Lights HTTP v1.0.0
Route Dependencies
============================================================================

Resolve the collaborators wired onto app.state by create_app().

============================================================================
"""

from fastapi import Request

from lights_http.devices.registry import DeviceRegistry
from lights_http.logic.fanout import FanOutExecutor
from lights_http.logic.health import HealthAggregator


def get_fanout_executor(request: Request) -> FanOutExecutor:
    return request.app.state.executor


def get_device_registry(request: Request) -> DeviceRegistry:
    return request.app.state.registry


def get_health_aggregator(request: Request) -> HealthAggregator:
    return request.app.state.health
