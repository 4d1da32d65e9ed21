# ============================================================================
# Lights HTTP v1.0.0
# Authentication & Security Module
# ============================================================================

from lights_http.auth.security import (
    authenticate,
    require_bearer_token,
    verify_bearer_token,
)

__all__ = ["authenticate", "require_bearer_token", "verify_bearer_token"]
