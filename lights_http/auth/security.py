"""
============================================================================
Lights HTTP v1.0.0
Security Module - Static Bearer Token Authentication
============================================================================

Reliability Level: L6 Critical
Input Constraints: Authorization header, configured bearer token
Side Effects: None (pure verification)

MANDATE:
- Accept iff the header is present, uses the "Bearer " scheme and the
  extracted value equals the configured token exactly
- Timing-safe comparison (hmac.compare_digest)
- Every rejection looks the same from outside; the reason is logged only
- No per-caller identity, session or rate limit

============================================================================
"""

import hmac
import logging
from typing import Optional

from fastapi import Header, Request

from lights_http.context import current_correlation_id
from lights_http.errors import AuthenticationError, LightsErrorCode

# Configure module logger
logger = logging.getLogger(__name__)


# ============================================================================
# CONSTANTS
# ============================================================================

AUTHORIZATION_HEADER = "Authorization"
BEARER_PREFIX = "Bearer "

REASON_MISSING = "missing Authorization header"
REASON_SCHEME = "invalid authorization scheme"
REASON_MISMATCH = "token mismatch"
REASON_UNCONFIGURED = "no bearer token configured"


# ============================================================================
# VERIFICATION
# ============================================================================

def rejection_reason(authorization: Optional[str], expected_token: str) -> Optional[str]:
    """
    Return why `authorization` is rejected, or None if it is accepted.

    The token comparison runs over the full length of both values
    regardless of where they differ.
    """
    if not expected_token:
        return REASON_UNCONFIGURED
    if not authorization:
        return REASON_MISSING
    if not authorization.startswith(BEARER_PREFIX):
        return REASON_SCHEME

    presented = authorization[len(BEARER_PREFIX):]
    if not hmac.compare_digest(presented.encode("utf-8"), expected_token.encode("utf-8")):
        return REASON_MISMATCH
    return None


def verify_bearer_token(authorization: Optional[str], expected_token: str) -> bool:
    """True iff `authorization` carries exactly `expected_token`."""
    return rejection_reason(authorization, expected_token) is None


def authenticate(
    authorization: Optional[str],
    expected_token: str,
    correlation_id: str = "unknown",
) -> None:
    """
    Gate a call on its bearer credential.

    Raises:
        AuthenticationError: On any rejection; the reason is attached for
            logging but never rendered into the response.
    """
    reason = rejection_reason(authorization, expected_token)
    if reason is None:
        return
    logger.warning(
        f"[{LightsErrorCode.AUTH_FAILURE}] Authentication rejected | "
        f"reason={reason} | correlation_id={correlation_id}"
    )
    raise AuthenticationError(reason)


# ============================================================================
# FASTAPI DEPENDENCY
# ============================================================================

async def require_bearer_token(
    request: Request,
    authorization: Optional[str] = Header(None, alias=AUTHORIZATION_HEADER),
) -> None:
    """
    Route dependency guarding every /lights endpoint.

    Runs before the handler body, so a rejected call never reaches any
    business logic.
    """
    context = getattr(request.state, "context", None)
    correlation_id = context.correlation_id if context is not None else current_correlation_id()
    authenticate(
        authorization,
        request.app.state.config.bearer_token,
        correlation_id=correlation_id,
    )
