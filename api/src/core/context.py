"""Request context management using contextvars.

Each request gets a request ID plus optional actor/trace information that
every log entry picks up without threading parameters through the call stack.
The actor is identified by lowercased email, the durable identity key used
across comments and the audit log.
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4


request_id_var: ContextVar[str] = ContextVar("request_id", default="")
actor_email_var: ContextVar[str | None] = ContextVar("actor_email", default=None)
trace_id_var: ContextVar[str | None] = ContextVar("trace_id", default=None)
correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def generate_request_id() -> str:
    """Generate a new unique request ID."""
    return str(uuid4())


def get_request_id() -> str:
    """Get the current request ID."""
    return request_id_var.get()


def set_request_id(request_id: str | None = None) -> str:
    """Set the request ID for the current context.

    Args:
        request_id: Optional request ID. If not provided, generates a new one.

    Returns:
        The request ID that was set.
    """
    rid = request_id or generate_request_id()
    request_id_var.set(rid)
    return rid


def get_actor_email() -> str | None:
    """Get the authenticated actor's email for the current request."""
    return actor_email_var.get()


def set_actor_email(email: str | None) -> None:
    """Set the authenticated actor's email (lowercased) for the current request."""
    actor_email_var.set(email.lower() if email else None)


def get_trace_id() -> str | None:
    """Get the current trace ID."""
    return trace_id_var.get()


def set_trace_id(trace_id: str | None) -> None:
    """Set the trace ID from distributed tracing headers."""
    trace_id_var.set(trace_id)


def get_correlation_id() -> str | None:
    """Get the current correlation ID."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str | None) -> None:
    """Set the correlation ID for tracking related operations."""
    correlation_id_var.set(correlation_id)


def get_context() -> dict[str, Any]:
    """Get the populated context variables as a dictionary.

    Returns:
        Dictionary with whichever of request_id, actor, trace_id and
        correlation_id are set.
    """
    context: dict[str, Any] = {}

    request_id = get_request_id()
    if request_id:
        context["request_id"] = request_id

    actor = get_actor_email()
    if actor:
        context["actor"] = actor

    trace_id = get_trace_id()
    if trace_id:
        context["trace_id"] = trace_id

    correlation_id = get_correlation_id()
    if correlation_id:
        context["correlation_id"] = correlation_id

    return context


def clear_context() -> None:
    """Clear all context variables.

    Called at the end of each request so values never leak into the next one.
    """
    request_id_var.set("")
    actor_email_var.set(None)
    trace_id_var.set(None)
    correlation_id_var.set(None)


class RequestContext:
    """Context manager for request scope outside the HTTP middleware.

    Usage:
        with RequestContext(actor_email="ana@example.com"):
            log.info("seeding_lessons")  # includes request_id and actor
    """

    def __init__(
        self,
        request_id: str | None = None,
        actor_email: str | None = None,
        trace_id: str | None = None,
    ) -> None:
        self.request_id = request_id
        self.actor_email = actor_email
        self.trace_id = trace_id
        self._tokens: list[tuple[ContextVar[Any], Any]] = []

    def __enter__(self) -> "RequestContext":
        """Enter context and set variables."""
        request_id = self.request_id or generate_request_id()
        self._tokens.append((request_id_var, request_id_var.set(request_id)))
        if self.actor_email is not None:
            self._tokens.append(
                (actor_email_var, actor_email_var.set(self.actor_email.lower()))
            )
        if self.trace_id is not None:
            self._tokens.append((trace_id_var, trace_id_var.set(self.trace_id)))
        return self

    def __exit__(self, *_: object) -> None:
        """Exit context and restore previous values."""
        for var, token in reversed(self._tokens):
            var.reset(token)
        self._tokens.clear()
