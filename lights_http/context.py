"""
============================================================================
Lights HTTP v1.0.0
Request Context - Per-Call Correlation Record
============================================================================

Exactly one RequestContext exists per inbound call. It is created at
pipeline entry, is read-only to every downstream stage and is discarded
when the call completes.

The context travels two ways:
- explicitly, as a parameter (handlers receive it via get_request_context)
- through a typed ContextVar scoped to the call's task, for log lines
  emitted by code that was not handed the context

============================================================================
"""

from contextvars import ContextVar
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional
import time
import uuid

from lights_http.errors import CorrelationError

# Response header carrying the correlation identifier
REQUEST_ID_HEADER = "X-Request-ID"

# Length of a correlation identifier (uuid4 hex)
REQUEST_ID_LENGTH = 32


@dataclass(frozen=True)
class RequestContext:
    """
    Immutable per-call record.

    correlation_id: 32 lowercase hex characters from os.urandom
    started_at: time.perf_counter() at pipeline entry
    started_at_utc: wall-clock time at pipeline entry
    """
    correlation_id: str
    started_at: float
    started_at_utc: datetime

    def elapsed_seconds(self) -> float:
        return time.perf_counter() - self.started_at


_current_context: ContextVar[Optional[RequestContext]] = ContextVar(
    "lights_request_context", default=None
)


def generate_correlation_id() -> str:
    """
    Generate a fixed-width correlation identifier.

    Raises:
        CorrelationError: If the entropy source is unavailable. Callers
            must fail the request rather than continue with a degraded id.
    """
    try:
        return uuid.uuid4().hex
    except (OSError, NotImplementedError) as e:
        raise CorrelationError(f"Entropy source unavailable: {e}")


def new_request_context() -> RequestContext:
    return RequestContext(
        correlation_id=generate_correlation_id(),
        started_at=time.perf_counter(),
        started_at_utc=datetime.now(timezone.utc),
    )


def bind_context(context: RequestContext):
    """Bind `context` to the running task; returns a token for reset_context."""
    return _current_context.set(context)


def reset_context(token) -> None:
    _current_context.reset(token)


def current_context() -> Optional[RequestContext]:
    return _current_context.get()


def current_correlation_id() -> str:
    context = _current_context.get()
    return context.correlation_id if context is not None else "unknown"
