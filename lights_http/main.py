"""
============================================================================
Lights HTTP v1.0.0
Service Entry Point
============================================================================

Startup:
    1. Configure logging
    2. Load ServiceConfig (exit 1 if BEARER_TOKEN is missing)
    3. Start the device registry
    4. Start the Prometheus metrics server on METRICS_PORT
    5. Serve the API with uvicorn on HOSTNAME:PORT

============================================================================
"""

import logging
import sys

import uvicorn

from lights_http.config import ServiceConfig
from lights_http.devices.registry import SimulatedDeviceRegistry
from lights_http.errors import ConfigurationError
from lights_http.observability.metrics import PrometheusMetricsSink, start_metrics_server
from lights_http.pipeline import create_app

logger = logging.getLogger("LIGHTS")


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def run() -> None:
    configure_logging()
    try:
        config = ServiceConfig.from_environment()
    except ConfigurationError as e:
        logger.error(f"Failed to load config | error={e}")
        sys.exit(1)
    logging.getLogger().setLevel(getattr(logging, config.log_level, logging.INFO))

    registry = SimulatedDeviceRegistry.with_devices(config.simulated_devices)
    registry.start()

    metrics = PrometheusMetricsSink()
    app = create_app(config, registry, metrics=metrics)

    start_metrics_server(config.metrics_port, config.host, metrics.registry)

    logger.info(
        f"Starting API server | addr={config.host}:{config.port} | "
        f"metrics_addr={config.host}:{config.metrics_port}"
    )
    uvicorn.run(app, host=config.host, port=config.port, log_level=config.log_level.lower())


if __name__ == "__main__":
    run()
