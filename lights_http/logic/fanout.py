"""
============================================================================
Lights HTTP v1.0.0
Command Fan-Out Executor
============================================================================

Reliability Level: L6 Critical
Input Constraints: A validated Command and the caller's RequestContext
Side Effects: One primitive call per device via the DeviceRegistry

POLICY:
- Continue-on-error: a failure on device i never aborts devices i+1..n
- Every device is attempted exactly once, strictly sequentially
- A fixed delay separates successive devices (not before the first, not
  after the last); zero removes it without changing outcomes
- overall_succeeded is the logical AND of all outcomes; an empty device
  set succeeds trivially
- Device errors are collected into outcomes and never raised past
  execute()

============================================================================
"""

from dataclasses import dataclass
from typing import Awaitable, Callable, List, Optional, Tuple
import asyncio
import logging

from lights_http.context import RequestContext
from lights_http.devices.registry import DeviceRegistry
from lights_http.errors import LightsErrorCode
from lights_http.logic.commands import Command, CommandKind
from lights_http.observability.metrics import MetricsSink, RESULT_ERROR, RESULT_SUCCESS

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

# Spacing between device calls; the transport stalls on back-to-back commands
DEFAULT_INTER_DEVICE_DELAY_SECONDS = 0.1


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class DeviceCommandOutcome:
    """Result of applying one command to one device."""
    device_id: str
    succeeded: bool
    error: Optional[str] = None


@dataclass(frozen=True)
class AggregateCommandResult:
    """
    Combined outcome of one fan-out.

    overall_succeeded is derived from outcomes and is never set directly.
    """
    operation_name: str
    outcomes: Tuple[DeviceCommandOutcome, ...]

    @property
    def overall_succeeded(self) -> bool:
        return all(outcome.succeeded for outcome in self.outcomes)

    @property
    def failed_devices(self) -> List[str]:
        return [outcome.device_id for outcome in self.outcomes if not outcome.succeeded]

    def error_message(self) -> str:
        return f"failed to {self.operation_name} some lights"


# =============================================================================
# EXECUTOR
# =============================================================================

class FanOutExecutor:
    """
    Applies one Command across every currently known device.

    Reliability Level: L6 Critical
    Input Constraints: registry must be non-None
    Side Effects: Device I/O, light operation metrics
    """

    def __init__(
        self,
        registry: DeviceRegistry,
        inter_device_delay: float = DEFAULT_INTER_DEVICE_DELAY_SECONDS,
        metrics: Optional[MetricsSink] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """
        Args:
            registry: Device registry to enumerate and drive
            inter_device_delay: Seconds between successive device calls
            metrics: Optional sink for lights_operations_total
            sleep: Awaitable used for the delay (injectable for tests)
        """
        if inter_device_delay < 0:
            raise ValueError(f"inter_device_delay must be non-negative, got: {inter_device_delay}")
        self._registry = registry
        self._delay = inter_device_delay
        self._metrics = metrics
        self._sleep = sleep

    @property
    def inter_device_delay(self) -> float:
        return self._delay

    async def execute(
        self,
        command: Command,
        context: RequestContext,
    ) -> AggregateCommandResult:
        """
        Apply `command` to each device in enumeration order.

        Returns:
            AggregateCommandResult with one outcome per device. Never raises
            for device failures.
        """
        correlation_id = context.correlation_id
        device_ids = list(self._registry.devices())

        logger.info(
            f"[LIGHTS-FANOUT] Executing {command.operation_name} operation | "
            f"correlation_id={correlation_id} | devices={len(device_ids)}"
        )
        if not device_ids and not self._registry.initialized:
            logger.warning(
                f"[LIGHTS-FANOUT] Registry not initialized, nothing to do | "
                f"correlation_id={correlation_id}"
            )

        outcomes: List[DeviceCommandOutcome] = []
        for index, device_id in enumerate(device_ids):
            if index > 0 and self._delay > 0:
                await self._sleep(self._delay)
            outcomes.append(await self._apply(command, device_id, correlation_id))

        result = AggregateCommandResult(
            operation_name=command.operation_name,
            outcomes=tuple(outcomes),
        )

        if self._metrics is not None:
            self._metrics.record_light_operation(
                command.operation_name,
                RESULT_SUCCESS if result.overall_succeeded else RESULT_ERROR,
            )

        if not result.overall_succeeded:
            logger.error(
                f"[{LightsErrorCode.DEVICE_OPERATION}] {result.error_message()} | "
                f"correlation_id={correlation_id} | "
                f"failed={len(result.failed_devices)}/{len(outcomes)}"
            )
        return result

    async def _apply(
        self,
        command: Command,
        device_id: str,
        correlation_id: str,
    ) -> DeviceCommandOutcome:
        try:
            await self._dispatch(command, device_id)
        except Exception as e:
            logger.error(
                f"[{LightsErrorCode.DEVICE_OPERATION}] Failed to {command.operation_name} device | "
                f"device={device_id} | correlation_id={correlation_id} | error={e}"
            )
            return DeviceCommandOutcome(device_id=device_id, succeeded=False, error=str(e))
        return DeviceCommandOutcome(device_id=device_id, succeeded=True)

    async def _dispatch(self, command: Command, device_id: str) -> None:
        registry = self._registry
        if command.kind is CommandKind.POWER:
            if command.on:
                await registry.turn_on(device_id)
            else:
                await registry.turn_off(device_id)
        elif command.kind is CommandKind.COLOR:
            await registry.set_color(device_id, command.color)
        elif command.kind is CommandKind.BRIGHTNESS:
            await registry.set_brightness(device_id, command.brightness)
        elif command.kind is CommandKind.COLOR_TEMPERATURE:
            await registry.set_color_temperature(device_id, command.kelvin)
        else:
            raise ValueError(f"Unsupported command kind: {command.kind}")
