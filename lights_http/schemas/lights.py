"""
============================================================================
Lights HTTP v1.0.0
Light Schemas - Pydantic Models for Light Control Payloads
============================================================================

Input Constraints: JSON objects with integer fields only
Side Effects: None (pure validation)

MANDATE:
- Strict integers: strings, floats and booleans are rejected
- Malformed payloads -> "Invalid JSON"
- Out-of-range values -> the route's range message
- Validation completes before any device is contacted

============================================================================
"""

import json
import logging
from typing import ClassVar, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from lights_http.devices.registry import DeviceStatus
from lights_http.errors import LightsErrorCode, ValidationError
from lights_http.logic.commands import (
    BRIGHTNESS_MAX,
    BRIGHTNESS_MIN,
    BRIGHTNESS_RANGE_MESSAGE,
    COLOR_TEMPERATURE_MAX,
    COLOR_TEMPERATURE_MIN,
    COLOR_TEMPERATURE_RANGE_MESSAGE,
    RGB_MAX,
    RGB_MIN,
    RGB_RANGE_MESSAGE,
)

logger = logging.getLogger(__name__)

INVALID_JSON_MESSAGE = "Invalid JSON"

# Pydantic error types that mean "well-formed but out of range"
_RANGE_ERROR_TYPES = frozenset({
    "greater_than_equal",
    "less_than_equal",
})


# ============================================================================
# REQUEST MODELS
# ============================================================================

class RGBRequest(BaseModel):
    """Body of POST /lights/rgb."""
    model_config = ConfigDict(strict=True)

    r: int = Field(..., ge=RGB_MIN, le=RGB_MAX)
    g: int = Field(..., ge=RGB_MIN, le=RGB_MAX)
    b: int = Field(..., ge=RGB_MIN, le=RGB_MAX)

    range_message: ClassVar[str] = RGB_RANGE_MESSAGE


class BrightnessRequest(BaseModel):
    """Body of POST /lights/brightness."""
    model_config = ConfigDict(strict=True)

    brightness: int = Field(..., ge=BRIGHTNESS_MIN, le=BRIGHTNESS_MAX)

    range_message: ClassVar[str] = BRIGHTNESS_RANGE_MESSAGE


class ColorTemperatureRequest(BaseModel):
    """Body of POST /lights/colortemp, temperature in Kelvin."""
    model_config = ConfigDict(strict=True)

    temperature: int = Field(..., ge=COLOR_TEMPERATURE_MIN, le=COLOR_TEMPERATURE_MAX)

    range_message: ClassVar[str] = COLOR_TEMPERATURE_RANGE_MESSAGE


RequestModel = TypeVar("RequestModel", RGBRequest, BrightnessRequest, ColorTemperatureRequest)


def parse_request(
    model: Type[RequestModel],
    raw_body: bytes,
    operation_name: str,
    correlation_id: str = "unknown",
) -> RequestModel:
    """
    Parse and validate a raw request body.

    Raises:
        ValidationError: "Invalid JSON" for unparseable or wrongly typed
            payloads, the model's range message for out-of-range values
    """
    try:
        data = json.loads(raw_body)
    except ValueError as e:
        logger.error(
            f"[{LightsErrorCode.VALIDATION}] Invalid JSON in {operation_name} request | "
            f"correlation_id={correlation_id} | error={e}"
        )
        raise ValidationError(INVALID_JSON_MESSAGE)

    try:
        return model.model_validate(data)
    except PydanticValidationError as e:
        error_types = {error["type"] for error in e.errors()}
        if error_types and error_types <= _RANGE_ERROR_TYPES:
            logger.warning(
                f"[{LightsErrorCode.VALIDATION}] Out-of-range {operation_name} values | "
                f"correlation_id={correlation_id} | payload={data}"
            )
            raise ValidationError(model.range_message)
        logger.error(
            f"[{LightsErrorCode.VALIDATION}] Invalid JSON in {operation_name} request | "
            f"correlation_id={correlation_id} | errors={sorted(error_types)}"
        )
        raise ValidationError(INVALID_JSON_MESSAGE)


# ============================================================================
# RESPONSE MODELS
# ============================================================================

class StatusResponse(BaseModel):
    status: str


class ErrorResponse(BaseModel):
    error: str


class ColorOut(BaseModel):
    r: int
    g: int
    b: int


class DeviceStatusOut(BaseModel):
    """One entry of GET /lights/status."""
    model_config = ConfigDict(populate_by_name=True)

    device_id: str = Field(..., alias="deviceID")
    on_off: bool = Field(..., alias="onOff")
    brightness: int
    color: ColorOut
    colortemp: str

    @classmethod
    def from_status(cls, status: DeviceStatus) -> "DeviceStatusOut":
        return cls(
            device_id=status.device_id,
            on_off=status.on,
            brightness=status.brightness,
            color=ColorOut(r=status.color.r, g=status.color.g, b=status.color.b),
            colortemp=f"{status.color_temperature}K",
        )
