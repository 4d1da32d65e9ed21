"""
============================================================================
Lights HTTP v1.0.0
Device Commands - Tagged Variant for Fan-Out
============================================================================

A Command is one logical device-level operation. The fan-out executor
dispatches on Command.kind, so the operation set is enumerable and can be
tested without any transport code.

Commands are validated on construction: an out-of-range value raises
ValidationError, so no invalid command can reach a device.

RANGES:
    RGB channels:        0 - 255 inclusive
    Brightness:          0 - 100 inclusive
    Color temperature:   2000 - 9000 Kelvin inclusive

============================================================================
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional

from lights_http.devices.registry import RGBColor
from lights_http.errors import ValidationError


# =============================================================================
# CONSTANTS
# =============================================================================

RGB_MIN = 0
RGB_MAX = 255

BRIGHTNESS_MIN = 0
BRIGHTNESS_MAX = 100

COLOR_TEMPERATURE_MIN = 2000
COLOR_TEMPERATURE_MAX = 9000

RGB_RANGE_MESSAGE = "RGB values must be between 0 and 255"
BRIGHTNESS_RANGE_MESSAGE = "Brightness must be between 0 and 100"
COLOR_TEMPERATURE_RANGE_MESSAGE = "Color temperature must be between 2000K and 9000K"

# Named colors served by the preset routes
COLOR_PRESETS: Dict[str, RGBColor] = {
    "red": RGBColor(255, 0, 0),
    "yellow": RGBColor(255, 255, 0),
    "orange": RGBColor(139, 64, 0),
    "dark-red": RGBColor(255, 11, 0),
}


# =============================================================================
# ENUMS
# =============================================================================

class CommandKind(str, Enum):
    """Tag of a device command."""
    POWER = "power"
    COLOR = "color"
    BRIGHTNESS = "brightness"
    COLOR_TEMPERATURE = "color_temperature"


# =============================================================================
# VALIDATION
# =============================================================================

def _in_range(value: object, low: int, high: int) -> bool:
    # bool is an int subclass; a JSON true is not a channel value
    if isinstance(value, bool) or not isinstance(value, int):
        return False
    return low <= value <= high


def validate_rgb(r: int, g: int, b: int) -> RGBColor:
    if not all(_in_range(channel, RGB_MIN, RGB_MAX) for channel in (r, g, b)):
        raise ValidationError(RGB_RANGE_MESSAGE)
    return RGBColor(r, g, b)


def validate_brightness(level: int) -> int:
    if not _in_range(level, BRIGHTNESS_MIN, BRIGHTNESS_MAX):
        raise ValidationError(BRIGHTNESS_RANGE_MESSAGE)
    return level


def validate_color_temperature(kelvin: int) -> int:
    if not _in_range(kelvin, COLOR_TEMPERATURE_MIN, COLOR_TEMPERATURE_MAX):
        raise ValidationError(COLOR_TEMPERATURE_RANGE_MESSAGE)
    return kelvin


# =============================================================================
# COMMAND
# =============================================================================

@dataclass(frozen=True)
class Command:
    """
    One logical device operation.

    Only the payload field matching `kind` is set:
        POWER             -> on
        COLOR             -> color
        BRIGHTNESS        -> brightness
        COLOR_TEMPERATURE -> kelvin

    Use the named constructors rather than building instances directly.
    """
    kind: CommandKind
    operation_name: str
    success_message: str
    on: Optional[bool] = None
    color: Optional[RGBColor] = None
    brightness: Optional[int] = None
    kelvin: Optional[int] = None

    @classmethod
    def power_on(cls) -> "Command":
        return cls(CommandKind.POWER, "turn_on", "lights turned on", on=True)

    @classmethod
    def power_off(cls) -> "Command":
        return cls(CommandKind.POWER, "turn_off", "lights turned off", on=False)

    @classmethod
    def set_color(cls, color: RGBColor, color_name: str) -> "Command":
        color = validate_rgb(color.r, color.g, color.b)
        return cls(
            CommandKind.COLOR,
            "set_color",
            f"lights set to {color_name}",
            color=color,
        )

    @classmethod
    def preset(cls, color_name: str) -> "Command":
        """Color command for one of COLOR_PRESETS."""
        try:
            color = COLOR_PRESETS[color_name]
        except KeyError:
            raise ValidationError(f"Unknown color preset: {color_name}")
        return cls.set_color(color, color_name)

    @classmethod
    def set_brightness(cls, level: int) -> "Command":
        return cls(
            CommandKind.BRIGHTNESS,
            "set_brightness",
            "brightness set",
            brightness=validate_brightness(level),
        )

    @classmethod
    def set_color_temperature(cls, kelvin: int) -> "Command":
        return cls(
            CommandKind.COLOR_TEMPERATURE,
            "set_color_temp",
            "color temperature set",
            kelvin=validate_color_temperature(kelvin),
        )
