# ============================================================================
# Lights HTTP v1.0.0
# API Routes Module
# ============================================================================

from lights_http.api.health import router as health_router
from lights_http.api.lights import router as lights_router

__all__ = ["health_router", "lights_router"]
