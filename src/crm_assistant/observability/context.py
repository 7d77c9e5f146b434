"""Async-safe request context for log correlation."""

from contextvars import ContextVar

# One value per request task; concurrent requests never see each other's ID
correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")


def get_correlation_id() -> str:
    """Return the correlation ID of the current request, or an empty string."""
    return correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current request context."""
    correlation_id_var.set(correlation_id)
