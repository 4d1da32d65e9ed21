"""
============================================================================
Lights HTTP v1.0.0
Lights API Endpoints
============================================================================

Input Constraints:
    - Bearer token authentication required (router dependency)
    - JSON bodies with strict integer fields where a body is expected
Side Effects:
    - One fan-out across all known devices per command route
    - Light operation metrics

ENDPOINTS:
    POST /lights/on, /lights/off              - Power all lights
    POST /lights/red, /yellow, /orange, /dark-red - Preset colors
    POST /lights/rgb                          - {r, g, b} 0-255
    POST /lights/brightness                   - {brightness} 0-100
    POST /lights/colortemp                    - {temperature} 2000-9000
    GET  /lights/status                       - Per-device state

RESPONSES:
    200 {status}  - every device accepted the command
    400 {error}   - payload rejected, no device contacted
    500 {error}   - at least one device failed (others were still attempted)

============================================================================
"""

import logging
from typing import List

from fastapi import APIRouter, Depends, Request, Response

from lights_http.api.dependencies import get_device_registry, get_fanout_executor
from lights_http.auth.security import require_bearer_token
from lights_http.context import RequestContext
from lights_http.devices.registry import DeviceRegistry, RGBColor
from lights_http.logic.commands import Command
from lights_http.logic.fanout import FanOutExecutor
from lights_http.middleware.correlation import get_request_context
from lights_http.responses import render_json
from lights_http.schemas.lights import (
    BrightnessRequest,
    ColorTemperatureRequest,
    DeviceStatusOut,
    ErrorResponse,
    RGBRequest,
    StatusResponse,
    parse_request,
)

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# Router Configuration
# ============================================================================

router = APIRouter(
    dependencies=[Depends(require_bearer_token)],
    responses={
        400: {"model": ErrorResponse, "description": "Invalid payload"},
        500: {"model": ErrorResponse, "description": "One or more devices failed"},
    },
)


async def run_command(
    command: Command,
    context: RequestContext,
    executor: FanOutExecutor,
) -> Response:
    """Fan `command` out and map the aggregate result to a response."""
    result = await executor.execute(command, context)
    if not result.overall_succeeded:
        return render_json({"error": result.error_message()}, status_code=500)
    return render_json({"status": command.success_message})


# ============================================================================
# Power
# ============================================================================

@router.post("/lights/on", response_model=StatusResponse, summary="Turn all lights on")
async def turn_on(
    context: RequestContext = Depends(get_request_context),
    executor: FanOutExecutor = Depends(get_fanout_executor),
) -> Response:
    return await run_command(Command.power_on(), context, executor)


@router.post("/lights/off", response_model=StatusResponse, summary="Turn all lights off")
async def turn_off(
    context: RequestContext = Depends(get_request_context),
    executor: FanOutExecutor = Depends(get_fanout_executor),
) -> Response:
    return await run_command(Command.power_off(), context, executor)


# ============================================================================
# Preset colors
# ============================================================================

@router.post("/lights/red", response_model=StatusResponse, summary="Set all lights to red")
async def set_red(
    context: RequestContext = Depends(get_request_context),
    executor: FanOutExecutor = Depends(get_fanout_executor),
) -> Response:
    return await run_command(Command.preset("red"), context, executor)


@router.post("/lights/yellow", response_model=StatusResponse, summary="Set all lights to yellow")
async def set_yellow(
    context: RequestContext = Depends(get_request_context),
    executor: FanOutExecutor = Depends(get_fanout_executor),
) -> Response:
    return await run_command(Command.preset("yellow"), context, executor)


@router.post("/lights/orange", response_model=StatusResponse, summary="Set all lights to orange")
async def set_orange(
    context: RequestContext = Depends(get_request_context),
    executor: FanOutExecutor = Depends(get_fanout_executor),
) -> Response:
    return await run_command(Command.preset("orange"), context, executor)


@router.post("/lights/dark-red", response_model=StatusResponse, summary="Set all lights to dark red")
async def set_dark_red(
    context: RequestContext = Depends(get_request_context),
    executor: FanOutExecutor = Depends(get_fanout_executor),
) -> Response:
    return await run_command(Command.preset("dark-red"), context, executor)


# ============================================================================
# Parameterized commands
# ============================================================================

@router.post("/lights/rgb", response_model=StatusResponse, summary="Set all lights to an RGB color")
async def set_rgb(
    request: Request,
    context: RequestContext = Depends(get_request_context),
    executor: FanOutExecutor = Depends(get_fanout_executor),
) -> Response:
    body = parse_request(RGBRequest, await request.body(), "RGB", context.correlation_id)
    logger.info(
        f"[LIGHTS-API] Setting RGB color | correlation_id={context.correlation_id} | "
        f"color=rgb({body.r},{body.g},{body.b})"
    )
    command = Command.set_color(RGBColor(body.r, body.g, body.b), "rgb")
    return await run_command(command, context, executor)


@router.post("/lights/brightness", response_model=StatusResponse, summary="Set brightness of all lights")
async def set_brightness(
    request: Request,
    context: RequestContext = Depends(get_request_context),
    executor: FanOutExecutor = Depends(get_fanout_executor),
) -> Response:
    body = parse_request(
        BrightnessRequest, await request.body(), "brightness", context.correlation_id
    )
    return await run_command(Command.set_brightness(body.brightness), context, executor)


@router.post("/lights/colortemp", response_model=StatusResponse, summary="Set color temperature of all lights")
async def set_color_temperature(
    request: Request,
    context: RequestContext = Depends(get_request_context),
    executor: FanOutExecutor = Depends(get_fanout_executor),
) -> Response:
    body = parse_request(
        ColorTemperatureRequest, await request.body(), "color temperature", context.correlation_id
    )
    logger.info(
        f"[LIGHTS-API] Setting color temperature | correlation_id={context.correlation_id} | "
        f"temperature={body.temperature}K"
    )
    return await run_command(Command.set_color_temperature(body.temperature), context, executor)


# ============================================================================
# Status
# ============================================================================

@router.get("/lights/status", response_model=List[DeviceStatusOut], summary="Current state of every light")
async def lights_status(
    context: RequestContext = Depends(get_request_context),
    registry: DeviceRegistry = Depends(get_device_registry),
) -> Response:
    """
    Read the state of each device in enumeration order.

    A device that fails to report is skipped and logged; it never fails
    the whole call.
    """
    logger.info(f"[LIGHTS-API] Getting lights status | correlation_id={context.correlation_id}")

    statuses = []
    for device_id in registry.devices():
        try:
            status = await registry.request_status(device_id)
        except Exception as e:
            logger.error(
                f"[LIGHTS-API] Failed to request status | device={device_id} | "
                f"correlation_id={context.correlation_id} | error={e}"
            )
            continue
        statuses.append(DeviceStatusOut.from_status(status).model_dump(by_alias=True))

    return render_json(statuses)
