"""
============================================================================
Lights HTTP v1.0.0
Correlation Middleware - Request Identity and Access Logging
============================================================================

Outermost stage of the pipeline. For every inbound call it:
1. Generates a RequestContext before any other stage runs
2. Stores it on request.state and binds it to the call's ContextVar
3. Logs request start and completion with the correlation_id
4. Sets X-Request-ID on every response, including error responses
5. Turns any exception escaping the inner stages into a generic 500

If the correlation identifier cannot be generated the call fails closed
with a 500 and no inner stage runs.

============================================================================
"""

import logging

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from lights_http.context import (
    REQUEST_ID_HEADER,
    RequestContext,
    bind_context,
    new_request_context,
    reset_context,
)
from lights_http.errors import CorrelationError, LightsErrorCode
from lights_http.responses import internal_error_response

logger = logging.getLogger(__name__)


def get_request_context(request: Request) -> RequestContext:
    """FastAPI dependency returning the call's RequestContext."""
    return request.state.context


class CorrelationMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            context = new_request_context()
        except CorrelationError as e:
            logger.error(
                f"[{LightsErrorCode.CORRELATION}] Rejecting request without correlation id | "
                f"method={request.method} | path={request.url.path} | error={e.message}"
            )
            return internal_error_response()

        request.state.context = context
        token = bind_context(context)
        try:
            logger.info(
                f"Request started | method={request.method} | path={request.url.path} | "
                f"correlation_id={context.correlation_id} | "
                f"user_agent={request.headers.get('user-agent', '')} | "
                f"remote_addr={request.client.host if request.client else ''}"
            )

            try:
                response = await call_next(request)
            except Exception:
                logger.exception(
                    f"[LHT-500] Unhandled exception | method={request.method} | "
                    f"path={request.url.path} | correlation_id={context.correlation_id}"
                )
                response = internal_error_response()

            response.headers[REQUEST_ID_HEADER] = context.correlation_id
            logger.info(
                f"Request completed | method={request.method} | path={request.url.path} | "
                f"correlation_id={context.correlation_id} | status={response.status_code} | "
                f"duration_ms={context.elapsed_seconds() * 1000:.2f}"
            )
            return response
        finally:
            reset_context(token)
