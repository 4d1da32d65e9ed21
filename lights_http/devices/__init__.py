# ============================================================================
# Lights HTTP v1.0.0
# Device Registry Boundary
# ============================================================================

from lights_http.devices.registry import (
    DeviceRegistry,
    DeviceStatus,
    RGBColor,
    SimulatedDeviceRegistry,
)

__all__ = ["DeviceRegistry", "DeviceStatus", "RGBColor", "SimulatedDeviceRegistry"]
