# fundcompare/utils/context.py
"""
Request context for the Fund Comparison API.

Holds the correlation ID of the request being served. Uses contextvars, so
the value follows async/await calls; worker threads see it only when the
task is submitted through run_in_context().

Usage:
    from fundcompare.utils.context import get_correlation_id, set_correlation_id

    # In middleware
    set_correlation_id("abc-123")

    # In any service/handler
    correlation_id = get_correlation_id()  # Returns "abc-123"
"""

import contextvars
from contextvars import ContextVar
from typing import Any, Callable

_correlation_id_var: ContextVar[str | None] = ContextVar("correlation_id", default=None)


def get_correlation_id() -> str | None:
    """
    Get the current request's correlation ID.

    Returns:
        The correlation ID for the current request, or None if not set.
    """
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current request (called by middleware)."""
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    """Clear the correlation ID at the end of a request."""
    _correlation_id_var.set(None)


def run_in_context(fn: Callable[..., Any]) -> Callable[..., Any]:
    """
    Bind fn to a copy of the caller's context.

    Used when handing work to a thread pool so log records emitted by the
    worker still carry the request's correlation ID.

    Example:
        executor.submit(run_in_context(provider.get_series), "120503")
    """
    ctx = contextvars.copy_context()

    def runner(*args: Any, **kwargs: Any) -> Any:
        return ctx.run(fn, *args, **kwargs)

    return runner
