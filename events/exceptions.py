"""
Tessera - Event Errors
"""

from core.errors import ErrorSeverity, EventError


class ImmutableEventError(EventError, TypeError):
    """Attempt to modify an immutable event."""

    error_code = "EVENT_IMMUTABLE"
    default_severity = ErrorSeverity.WARNING


class EventListenerError(EventError, RuntimeError):
    """A listener could not be invoked."""

    error_code = "EVENT_LISTENER_ERROR"


class DispatcherNotFoundError(EventError, RuntimeError):
    """A dispatcher-aware object has no dispatcher set."""

    error_code = "EVENT_DISPATCHER_NOT_FOUND"
