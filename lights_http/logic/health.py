"""
============================================================================
Lights HTTP v1.0.0
Health Aggregator - Subsystem Checks and Severity Precedence
============================================================================

Reliability Level: L5 High
Input Constraints: None
Side Effects: Reads device registry state

Each registered check is evaluated independently on every call (no
caching). Overall severity is derived by precedence, never averaged:
error > warn > ok. Absence of devices is not degraded health.

Uptime is measured from PROCESS_STARTED_AT, captured once at import.

============================================================================
"""

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Dict, Iterable, List, Optional, Tuple
import logging
import time

from lights_http.devices.registry import DeviceRegistry

logger = logging.getLogger(__name__)

# Monotonic process start, captured once
PROCESS_STARTED_AT = time.monotonic()

REGISTRY_CHECK_NAME = "registry"


# =============================================================================
# ENUMS
# =============================================================================

class Severity(str, Enum):
    OK = "ok"
    WARN = "warn"
    ERROR = "error"


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class HealthCheck:
    name: str
    severity: Severity
    detail: Optional[str] = None

    def to_dict(self) -> Dict[str, str]:
        body = {"status": self.severity.value}
        if self.detail:
            body["detail"] = self.detail
        return body


@dataclass(frozen=True)
class HealthReport:
    """
    Aggregated health for one call.

    overall is derived from checks and is never set directly.
    """
    uptime: timedelta
    timestamp: datetime
    checks: Dict[str, HealthCheck] = field(default_factory=dict)

    @property
    def overall(self) -> Severity:
        return overall_severity(check.severity for check in self.checks.values())

    def to_dict(self) -> dict:
        return {
            "status": self.overall.value,
            "timestamp": self.timestamp.isoformat(),
            "uptime": format_uptime(self.uptime),
            "checks": {name: check.to_dict() for name, check in self.checks.items()},
        }


def overall_severity(severities: Iterable[Severity]) -> Severity:
    """Precedence: any error -> error; else any warn -> warn; else ok."""
    overall = Severity.OK
    for severity in severities:
        if severity is Severity.ERROR:
            return Severity.ERROR
        if severity is Severity.WARN:
            overall = Severity.WARN
    return overall


def format_uptime(uptime: timedelta) -> str:
    """Render as e.g. "3h2m5.250s"."""
    total = uptime.total_seconds()
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    text = ""
    if hours:
        text += f"{int(hours)}h"
    if hours or minutes:
        text += f"{int(minutes)}m"
    return text + f"{seconds:.3f}s"


# =============================================================================
# CHECKS
# =============================================================================

def registry_check(registry: Optional[DeviceRegistry]) -> HealthCheck:
    """Device registry reachability."""
    if registry is None or not registry.initialized:
        return HealthCheck(REGISTRY_CHECK_NAME, Severity.ERROR, "Device registry not initialized")

    count = len(registry.devices())
    if count > 0:
        return HealthCheck(REGISTRY_CHECK_NAME, Severity.OK, f"{count} devices connected")
    return HealthCheck(
        REGISTRY_CHECK_NAME,
        Severity.OK,
        "Device registry initialized, no devices currently connected",
    )


# =============================================================================
# AGGREGATOR
# =============================================================================

CheckFn = Callable[[], HealthCheck]


class HealthAggregator:
    """Evaluates registered checks and builds a HealthReport."""

    def __init__(
        self,
        checks: Optional[List[Tuple[str, CheckFn]]] = None,
        process_started_at: float = PROCESS_STARTED_AT,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._checks: List[Tuple[str, CheckFn]] = list(checks or [])
        self._process_started_at = process_started_at
        self._clock = clock

    @classmethod
    def for_registry(cls, registry: Optional[DeviceRegistry], **kwargs) -> "HealthAggregator":
        return cls(checks=[(REGISTRY_CHECK_NAME, lambda: registry_check(registry))], **kwargs)

    def register(self, name: str, check: CheckFn) -> None:
        self._checks.append((name, check))

    def evaluate(self, correlation_id: str = "unknown") -> HealthReport:
        results: Dict[str, HealthCheck] = {}
        for name, check in self._checks:
            try:
                results[name] = check()
            except Exception as e:
                # A failing probe counts against its own subsystem only
                logger.error(
                    f"[LIGHTS-HEALTH] Check raised | check={name} | "
                    f"correlation_id={correlation_id} | error={e}"
                )
                results[name] = HealthCheck(name, Severity.ERROR, str(e))

        return HealthReport(
            uptime=timedelta(seconds=self._clock() - self._process_started_at),
            timestamp=datetime.now(timezone.utc),
            checks=results,
        )
