# ============================================================================
# Lights HTTP v1.0.0
# Pydantic Schemas - Data Validation Layer
# ============================================================================

from lights_http.schemas.lights import (
    BrightnessRequest,
    ColorTemperatureRequest,
    DeviceStatusOut,
    ErrorResponse,
    RGBRequest,
    StatusResponse,
    parse_request,
)

__all__ = [
    "BrightnessRequest",
    "ColorTemperatureRequest",
    "DeviceStatusOut",
    "ErrorResponse",
    "RGBRequest",
    "StatusResponse",
    "parse_request",
]
