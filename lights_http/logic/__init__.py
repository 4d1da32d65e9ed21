"""
============================================================================
Lights HTTP v1.0.0
Logic Layer - Device Commands, Fan-Out and Health Aggregation
============================================================================
"""

from lights_http.logic.commands import COLOR_PRESETS, Command, CommandKind
from lights_http.logic.fanout import (
    AggregateCommandResult,
    DeviceCommandOutcome,
    FanOutExecutor,
)
from lights_http.logic.health import (
    HealthAggregator,
    HealthCheck,
    HealthReport,
    Severity,
    registry_check,
)

__all__ = [
    "COLOR_PRESETS",
    "Command",
    "CommandKind",
    "AggregateCommandResult",
    "DeviceCommandOutcome",
    "FanOutExecutor",
    "HealthAggregator",
    "HealthCheck",
    "HealthReport",
    "Severity",
    "registry_check",
]
