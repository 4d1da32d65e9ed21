"""
============================================================================
Lights HTTP v1.0.0
Health Endpoints
============================================================================

ENDPOINTS (no authentication):
    GET /health, /ready, /live

STATUS MAPPING:
    ok, warn -> 200 (the service is up even if a dependency is degraded)
    error    -> 503

============================================================================
"""

import logging

from fastapi import APIRouter, Depends, Response

from lights_http.api.dependencies import get_health_aggregator
from lights_http.context import RequestContext
from lights_http.logic.health import HealthAggregator, Severity
from lights_http.middleware.correlation import get_request_context
from lights_http.responses import render_json

logger = logging.getLogger(__name__)

router = APIRouter()

HTTP_STATUS_BY_SEVERITY = {
    Severity.OK: 200,
    Severity.WARN: 200,
    Severity.ERROR: 503,
}


@router.get("/health", summary="Aggregate health", operation_id="health")
@router.get("/ready", summary="Readiness probe", operation_id="ready")
@router.get("/live", summary="Liveness probe", operation_id="live")
async def health(
    context: RequestContext = Depends(get_request_context),
    aggregator: HealthAggregator = Depends(get_health_aggregator),
) -> Response:
    logger.info(f"[LIGHTS-HEALTH] Health check requested | correlation_id={context.correlation_id}")

    report = aggregator.evaluate(context.correlation_id)
    overall = report.overall
    if overall is not Severity.OK:
        logger.warning(
            f"[LIGHTS-HEALTH] Degraded health | status={overall.value} | "
            f"correlation_id={context.correlation_id}"
        )
    return render_json(report.to_dict(), status_code=HTTP_STATUS_BY_SEVERITY[overall])
