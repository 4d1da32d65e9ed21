"""
============================================================================
Lights HTTP v1.0.0
Response Rendering - JSON Encoding and Error Bodies
============================================================================

All route responses are encoded here so that a serialization failure
surfaces as EncodingError (LHT-030) and is turned into a generic 500 by
the pipeline, never a half-written body.

Rejected credentials and unmatched paths are redirected to FALLBACK_URL
rather than answered with a bare 401/404.

============================================================================
"""

import json
from typing import Any

from fastapi import Response
from fastapi.responses import JSONResponse, RedirectResponse

from lights_http.errors import EncodingError

# Where unauthenticated callers and unknown paths are sent
FALLBACK_URL = "https://xkcd.com/random/"

INTERNAL_ERROR_MESSAGE = "Internal server error"


def render_json(payload: Any, status_code: int = 200) -> Response:
    """
    Encode `payload` as a JSON response.

    Raises:
        EncodingError: If the payload is not JSON-serializable
    """
    try:
        body = json.dumps(payload, allow_nan=False, separators=(",", ":"))
    except (TypeError, ValueError) as e:
        raise EncodingError(f"Failed to encode response: {e}")
    return Response(
        content=body.encode("utf-8"),
        status_code=status_code,
        media_type="application/json",
    )


def error_response(message: str, status_code: int) -> Response:
    return JSONResponse(status_code=status_code, content={"error": message})


def internal_error_response() -> Response:
    return error_response(INTERNAL_ERROR_MESSAGE, 500)


def redirect_to_fallback() -> Response:
    return RedirectResponse(FALLBACK_URL, status_code=302)
