"""Per-request context: trace id, timing, and the request's cache outcome."""

import contextvars
import time
import uuid
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class RequestContext:
    """State scoped to one logical request."""

    trace_id: str
    started_at: float = field(default_factory=time.monotonic)
    # Outcome of the first cache lookup made while serving the request
    cache_hit: Optional[bool] = None

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)


_request_context: contextvars.ContextVar[Optional[RequestContext]] = contextvars.ContextVar(
    "request_context", default=None
)


def begin_request(trace_id: str | None = None) -> RequestContext:
    """
    Open a new request context in the current execution context.

    Args:
        trace_id: Optional trace id to reuse; a UUID4 is generated otherwise

    Returns:
        The new RequestContext
    """
    ctx = RequestContext(trace_id=trace_id or str(uuid.uuid4()))
    _request_context.set(ctx)
    return ctx


def end_request() -> None:
    """Clear the request context from the current execution context."""
    _request_context.set(None)


def current_request() -> Optional[RequestContext]:
    """Return the active request context, if any."""
    return _request_context.get()


def get_current_trace() -> Optional[str]:
    """
    Get the current trace ID from the context.

    Returns:
        The current trace ID if a request is active, None otherwise
    """
    ctx = _request_context.get()
    return ctx.trace_id if ctx else None


def record_cache_lookup(hit: bool) -> None:
    """
    Record a cache lookup outcome against the active request.

    Only the first lookup is kept: it belongs to the outermost cache-aside
    step, which decides whether the response as a whole came from cache.
    """
    ctx = _request_context.get()
    if ctx is not None and ctx.cache_hit is None:
        ctx.cache_hit = hit


def was_cache_hit() -> bool:
    """Whether the active request was served from cache."""
    ctx = _request_context.get()
    return bool(ctx and ctx.cache_hit)
