"""
============================================================================
Lights HTTP v1.0.0
Pipeline Composer - FastAPI Application Factory
============================================================================

Wires the request pipeline (outermost first):

    CorrelationMiddleware      request id, access log, last-resort 500
      InstrumentationMiddleware  timing, counts, in-flight gauge
        require_bearer_token       /lights/* only, route dependency
          route handler              fan-out executor or health aggregator
            render_json                response serialization

Outcome mapping:
    AuthenticationError -> 302 to FALLBACK_URL
    unmatched path      -> 302 to FALLBACK_URL
    wrong method        -> 302 to FALLBACK_URL on /lights/* without a valid
                           token, 405 otherwise
    ValidationError     -> 400 {error}
    EncodingError       -> 500 generic body
    anything else       -> 500 generic body (CorrelationMiddleware)

Every response carries X-Request-ID.

============================================================================
"""

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from fastapi import FastAPI, Request, Response
from fastapi.exception_handlers import http_exception_handler
from starlette.exceptions import HTTPException as StarletteHTTPException

from lights_http import __version__
from lights_http.api.health import router as health_router
from lights_http.api.lights import router as lights_router
from lights_http.auth.security import AUTHORIZATION_HEADER, authenticate
from lights_http.config import ServiceConfig
from lights_http.context import current_correlation_id
from lights_http.devices.registry import DeviceRegistry
from lights_http.errors import AuthenticationError, EncodingError, ValidationError
from lights_http.logic.fanout import FanOutExecutor
from lights_http.logic.health import HealthAggregator
from lights_http.middleware.correlation import CorrelationMiddleware
from lights_http.middleware.instrumentation import InstrumentationMiddleware
from lights_http.observability.metrics import MetricsSink, PrometheusMetricsSink
from lights_http.responses import (
    error_response,
    internal_error_response,
    redirect_to_fallback,
)

# Configure module logger
logger = logging.getLogger(__name__)

# Every route under this prefix requires the bearer token
PROTECTED_PATH_PREFIX = "/lights/"


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

async def authentication_error_handler(request: Request, exc: AuthenticationError) -> Response:
    return redirect_to_fallback()


async def not_found_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == 404:
        logger.info(
            f"[LIGHTS-API] Unmatched route redirected | method={request.method} | "
            f"path={request.url.path} | correlation_id={current_correlation_id()}"
        )
        return redirect_to_fallback()

    # Method dispatch fails before the route dependency runs, so the gate
    # is applied here for protected paths
    if exc.status_code == 405 and request.url.path.startswith(PROTECTED_PATH_PREFIX):
        try:
            authenticate(
                request.headers.get(AUTHORIZATION_HEADER),
                request.app.state.config.bearer_token,
                correlation_id=current_correlation_id(),
            )
        except AuthenticationError:
            return redirect_to_fallback()
    return await http_exception_handler(request, exc)


async def validation_error_handler(request: Request, exc: ValidationError) -> Response:
    return error_response(exc.message, 400)


async def encoding_error_handler(request: Request, exc: EncodingError) -> Response:
    logger.error(
        f"[{exc.error_code}] Failed to encode response | path={request.url.path} | "
        f"correlation_id={current_correlation_id()} | error={exc.message}"
    )
    return internal_error_response()


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(
    config: ServiceConfig,
    registry: DeviceRegistry,
    metrics: Optional[MetricsSink] = None,
    inter_device_delay: Optional[float] = None,
    health: Optional[HealthAggregator] = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> FastAPI:
    """
    Build the lights API application.

    Args:
        config: Service configuration (bearer token, delay)
        registry: Device registry shared by every request
        metrics: Metrics sink; a PrometheusMetricsSink on a private
            registry is created when omitted
        inter_device_delay: Overrides config.inter_device_delay_seconds
        health: Overrides the default registry-backed HealthAggregator
        sleep: Awaitable used for the inter-device delay

    Returns:
        FastAPI application with middleware, routers and handlers wired
    """
    if metrics is None:
        metrics = PrometheusMetricsSink()
    if inter_device_delay is None:
        inter_device_delay = config.inter_device_delay_seconds
    if health is None:
        health = HealthAggregator.for_registry(registry)

    app = FastAPI(
        title="Lights HTTP",
        description="Authenticated control surface for networked lights",
        version=__version__,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )

    app.state.config = config
    app.state.registry = registry
    app.state.metrics = metrics
    app.state.health = health
    app.state.executor = FanOutExecutor(
        registry,
        inter_device_delay=inter_device_delay,
        metrics=metrics,
        sleep=sleep,
    )

    # add_middleware prepends, so the last one added runs first
    app.add_middleware(InstrumentationMiddleware, metrics=metrics)
    app.add_middleware(CorrelationMiddleware)

    app.add_exception_handler(AuthenticationError, authentication_error_handler)
    app.add_exception_handler(StarletteHTTPException, not_found_handler)
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(EncodingError, encoding_error_handler)

    app.include_router(health_router, tags=["Health"])
    app.include_router(lights_router, tags=["Lights"])

    logger.info(
        f"[LIGHTS-PIPELINE] Application created | "
        f"inter_device_delay={inter_device_delay}s | registry={type(registry).__name__}"
    )
    return app
