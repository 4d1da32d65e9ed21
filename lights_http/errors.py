"""
============================================================================
Lights HTTP v1.0.0
Error Taxonomy - Request Pipeline and Fan-Out Failures
============================================================================

Every failure in the request pipeline resolves to a response plus a log
line carrying the correlation_id. Nothing here is fatal to the process.

ERROR CODES:
    LHT-001: Authentication failure (missing/invalid bearer credential)
    LHT-010: Validation failure (malformed payload or out-of-range value)
    LHT-020: Device operation failure (single device, collected by fan-out)
    LHT-030: Response encoding failure
    LHT-040: Correlation identifier generation failure
    LHT-050: Configuration missing or invalid

============================================================================
"""

from typing import Optional


class LightsErrorCode:
    """Error codes used in log lines and exception messages."""
    AUTH_FAILURE = "LHT-001"
    VALIDATION = "LHT-010"
    DEVICE_OPERATION = "LHT-020"
    ENCODING = "LHT-030"
    CORRELATION = "LHT-040"
    CONFIG = "LHT-050"


class LightsError(Exception):
    """
    Base class for all service errors.

    Carries an error code and a human-readable message, rendered as
    "[CODE] message" when stringified.
    """

    error_code = "LHT-000"

    def __init__(self, message: str, error_code: Optional[str] = None):
        if error_code is not None:
            self.error_code = error_code
        self.message = message
        super().__init__(f"[{self.error_code}] {message}")


class AuthenticationError(LightsError):
    """
    Raised by the authentication gate when a credential is rejected.

    The reason is kept for the internal log only; the external response
    is identical for every reason.
    """

    error_code = LightsErrorCode.AUTH_FAILURE

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__("Authentication failed")


class ValidationError(LightsError):
    """Raised when a request payload is malformed or a value is out of range."""

    error_code = LightsErrorCode.VALIDATION


class DeviceOperationError(LightsError):
    """
    Raised by a device registry when a single device call fails.

    The fan-out executor collects these into per-device outcomes; they
    never propagate past it.
    """

    error_code = LightsErrorCode.DEVICE_OPERATION

    def __init__(self, device_id: str, message: str):
        self.device_id = device_id
        super().__init__(f"device {device_id}: {message}")


class EncodingError(LightsError):
    """Raised when a response payload cannot be serialized."""

    error_code = LightsErrorCode.ENCODING


class CorrelationError(LightsError):
    """Raised when a correlation identifier cannot be generated."""

    error_code = LightsErrorCode.CORRELATION


class ConfigurationError(LightsError):
    """Raised at startup when required configuration is missing or invalid."""

    error_code = LightsErrorCode.CONFIG
