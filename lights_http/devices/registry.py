"""
============================================================================
Lights HTTP v1.0.0
Device Registry - Transport Boundary
============================================================================

The device registry enumerates currently reachable devices and executes
primitive commands against a single device. The request pipeline only
consumes it through the DeviceRegistry interface below.

CONTRACT:
- devices() returns device ids in enumeration order
- every primitive either completes or raises DeviceOperationError
- an uninitialized registry enumerates as empty
- single-device calls may arrive concurrently from different requests

SimulatedDeviceRegistry is the in-process implementation used for local
runs and tests. It tolerates concurrent calls because every mutation runs
on the single event loop.

============================================================================
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set, Tuple
import logging

from lights_http.errors import DeviceOperationError

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# VALUE TYPES
# =============================================================================

@dataclass(frozen=True)
class RGBColor:
    """A color with 8-bit red, green and blue channels."""
    r: int
    g: int
    b: int

    def to_dict(self) -> Dict[str, int]:
        return {"r": self.r, "g": self.g, "b": self.b}


@dataclass(frozen=True)
class DeviceStatus:
    """
    Point-in-time state reported by a single device.

    color_temperature is in Kelvin; 0 means the device is in color mode.
    """
    device_id: str
    on: bool
    brightness: int
    color: RGBColor
    color_temperature: int


# =============================================================================
# REGISTRY INTERFACE
# =============================================================================

class DeviceRegistry(ABC):
    """
    Narrow interface to the device transport/discovery layer.

    Reliability Level: External collaborator
    Side Effects: Network I/O against physical devices
    """

    @property
    @abstractmethod
    def initialized(self) -> bool:
        """True once the transport has started and can enumerate devices."""

    @abstractmethod
    def devices(self) -> List[str]:
        """Currently reachable device ids, in enumeration order."""

    @abstractmethod
    async def turn_on(self, device_id: str) -> None:
        ...

    @abstractmethod
    async def turn_off(self, device_id: str) -> None:
        ...

    @abstractmethod
    async def set_color(self, device_id: str, color: RGBColor) -> None:
        ...

    @abstractmethod
    async def set_brightness(self, device_id: str, level: int) -> None:
        ...

    @abstractmethod
    async def set_color_temperature(self, device_id: str, kelvin: int) -> None:
        ...

    @abstractmethod
    async def request_status(self, device_id: str) -> DeviceStatus:
        ...


# =============================================================================
# SIMULATED REGISTRY
# =============================================================================

@dataclass
class _SimulatedDevice:
    on: bool = False
    brightness: int = 100
    color: RGBColor = field(default_factory=lambda: RGBColor(255, 255, 255))
    color_temperature: int = 0


class SimulatedDeviceRegistry(DeviceRegistry):
    """
    In-process device registry.

    Devices can be marked as failing, in which case every primitive
    against them raises DeviceOperationError. With record_calls set, each
    primitive call is recorded in `calls` as (device_id, primitive) for
    inspection; otherwise `calls` stays empty.
    """

    def __init__(
        self,
        device_ids: Optional[Iterable[str]] = None,
        initialized: bool = True,
        record_calls: bool = False,
    ) -> None:
        self._devices: Dict[str, _SimulatedDevice] = {}
        self._failing: Set[str] = set()
        self._initialized = initialized
        self._record_calls = record_calls
        self.calls: List[Tuple[str, str]] = []
        for device_id in device_ids or ():
            self.add_device(device_id)

    @classmethod
    def with_devices(cls, count: int) -> "SimulatedDeviceRegistry":
        """Create an initialized registry with `count` numbered devices."""
        return cls(device_ids=[f"sim-{index:04d}" for index in range(1, count + 1)])

    @property
    def initialized(self) -> bool:
        return self._initialized

    def start(self) -> None:
        self._initialized = True
        logger.info(
            f"[LIGHTS-REGISTRY] Simulated registry started | devices={len(self._devices)}"
        )

    def add_device(self, device_id: str) -> None:
        self._devices.setdefault(device_id, _SimulatedDevice())

    def fail_device(self, device_id: str, failing: bool = True) -> None:
        if failing:
            self._failing.add(device_id)
        else:
            self._failing.discard(device_id)

    def devices(self) -> List[str]:
        if not self._initialized:
            return []
        return list(self._devices)

    async def turn_on(self, device_id: str) -> None:
        self._device(device_id, "turn_on").on = True

    async def turn_off(self, device_id: str) -> None:
        self._device(device_id, "turn_off").on = False

    async def set_color(self, device_id: str, color: RGBColor) -> None:
        device = self._device(device_id, "set_color")
        device.color = color
        device.color_temperature = 0

    async def set_brightness(self, device_id: str, level: int) -> None:
        self._device(device_id, "set_brightness").brightness = level

    async def set_color_temperature(self, device_id: str, kelvin: int) -> None:
        self._device(device_id, "set_color_temperature").color_temperature = kelvin

    async def request_status(self, device_id: str) -> DeviceStatus:
        device = self._device(device_id, "request_status")
        return DeviceStatus(
            device_id=device_id,
            on=device.on,
            brightness=device.brightness,
            color=device.color,
            color_temperature=device.color_temperature,
        )

    def _device(self, device_id: str, primitive: str) -> _SimulatedDevice:
        if self._record_calls:
            self.calls.append((device_id, primitive))
        if not self._initialized:
            raise DeviceOperationError(device_id, "registry not initialized")
        device = self._devices.get(device_id)
        if device is None:
            raise DeviceOperationError(device_id, "unknown device")
        if device_id in self._failing:
            raise DeviceOperationError(device_id, f"{primitive} timed out")
        return device
