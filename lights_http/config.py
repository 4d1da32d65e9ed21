"""
============================================================================
Lights HTTP v1.0.0
Service Configuration
============================================================================

This module provides configuration management for the lights service:
- Environment variable parsing with type safety
- .env loading outside production (python-dotenv)
- Fail-closed behavior when the bearer token is missing (LHT-050)

ENVIRONMENT VARIABLES:
    - LIGHTS_ENV: "production" disables .env loading
    - HOSTNAME: Bind address (default: 0.0.0.0)
    - PORT: API port (default: 8080)
    - METRICS_PORT: Prometheus exposition port (default: 9090)
    - BEARER_TOKEN: Static API credential (REQUIRED)
    - INTER_DEVICE_DELAY_MS: Spacing between device calls (default: 100, 0 disables)
    - SIMULATED_DEVICES: Devices in the simulated registry (default: 0)
    - LOG_LEVEL: Root log level (default: INFO)

============================================================================
"""

from dataclasses import dataclass
import logging
import os

from dotenv import load_dotenv

from lights_http.errors import ConfigurationError, LightsErrorCode

# Configure module logger
logger = logging.getLogger(__name__)


# =============================================================================
# Default Values
# =============================================================================

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 8080
DEFAULT_METRICS_PORT = 9090

# The device transport stalls when it receives back-to-back commands
DEFAULT_INTER_DEVICE_DELAY_MS = 100

DEFAULT_SIMULATED_DEVICES = 0
DEFAULT_LOG_LEVEL = "INFO"

PRODUCTION_ENV = "production"


# =============================================================================
# ServiceConfig Class
# =============================================================================

@dataclass(frozen=True)
class ServiceConfig:
    """
    Lights service configuration.

    Reliability Level: L6 Critical
    Input Constraints: bearer_token must be non-empty
    Side Effects: None
    """

    bearer_token: str
    host: str = DEFAULT_HOST
    port: int = DEFAULT_PORT
    metrics_port: int = DEFAULT_METRICS_PORT
    inter_device_delay_ms: int = DEFAULT_INTER_DEVICE_DELAY_MS
    simulated_devices: int = DEFAULT_SIMULATED_DEVICES
    log_level: str = DEFAULT_LOG_LEVEL

    @property
    def inter_device_delay_seconds(self) -> float:
        return self.inter_device_delay_ms / 1000.0

    @classmethod
    def from_environment(cls) -> "ServiceConfig":
        """
        Load configuration from environment variables.

        Outside production a .env file in the working directory is loaded
        first; values already present in the environment win.

        Returns:
            ServiceConfig instance with values from environment

        Raises:
            ConfigurationError: If BEARER_TOKEN is missing or a port is invalid
        """
        if os.environ.get("LIGHTS_ENV", "").strip().lower() != PRODUCTION_ENV:
            load_dotenv()

        token = os.environ.get("BEARER_TOKEN", "").strip()
        if not token:
            logger.error(
                f"[{LightsErrorCode.CONFIG}] BEARER_TOKEN is not set"
            )
            raise ConfigurationError(
                "BEARER_TOKEN is required. Please set it in your environment or .env file"
            )

        host = os.environ.get("HOSTNAME", "").strip() or DEFAULT_HOST
        port = _parse_port("PORT", DEFAULT_PORT)
        metrics_port = _parse_port("METRICS_PORT", DEFAULT_METRICS_PORT)

        delay_ms = _parse_non_negative_int(
            "INTER_DEVICE_DELAY_MS", DEFAULT_INTER_DEVICE_DELAY_MS
        )
        simulated_devices = _parse_non_negative_int(
            "SIMULATED_DEVICES", DEFAULT_SIMULATED_DEVICES
        )
        log_level = os.environ.get("LOG_LEVEL", DEFAULT_LOG_LEVEL).strip().upper()

        logger.info(
            f"[LIGHTS-CONFIG] Loaded configuration | "
            f"host={host} | port={port} | metrics_port={metrics_port} | "
            f"inter_device_delay_ms={delay_ms} | "
            f"simulated_devices={simulated_devices}"
        )

        return cls(
            bearer_token=token,
            host=host,
            port=port,
            metrics_port=metrics_port,
            inter_device_delay_ms=delay_ms,
            simulated_devices=simulated_devices,
            log_level=log_level,
        )


# =============================================================================
# Parsing Helpers
# =============================================================================

def _parse_port(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        port = int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got: {raw}")
    if not 0 < port < 65536:
        raise ConfigurationError(f"{name} must be between 1 and 65535, got: {port}")
    return port


def _parse_non_negative_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        value = int(raw)
    except ValueError:
        value = -1
    if value < 0:
        logger.warning(
            f"[LIGHTS-CONFIG] Invalid {name} value: {raw}, using default: {default}"
        )
        return default
    return value
