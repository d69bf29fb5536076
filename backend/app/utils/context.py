# backend/app/utils/context.py
"""
Correlation ID storage for log tracing.

Uses contextvars, so the value follows a request through async/await.
Threads started from a request (backfill workers) do not inherit it
automatically; their work is wrapped with `bind_current_context()`, which
carries a copy of the caller's context into the thread.

Usage:
    from app.utils.context import get_correlation_id, set_correlation_id

    # In middleware
    set_correlation_id("abc-123")

    # In a script or background job
    with correlation_scope("seed-2024-01-01"):
        ...
"""

import contextvars
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import TypeVar

T = TypeVar("T")

_correlation_id_var: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "correlation_id", default=None
)


def get_correlation_id() -> str | None:
    """
    Get the current correlation ID.

    Returns:
        The correlation ID, or None outside any request or scope.
    """
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: str) -> None:
    """Set the correlation ID for the current request."""
    _correlation_id_var.set(correlation_id)


def clear_correlation_id() -> None:
    _correlation_id_var.set(None)


@contextmanager
def correlation_scope(correlation_id: str) -> Iterator[str]:
    """Bind a correlation ID for the duration of a block, then restore."""
    token = _correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id_var.reset(token)


def bind_current_context(fn: Callable[..., T]) -> Callable[..., T]:
    """
    Wrap fn so it runs in a copy of the caller's context.

    Each call gets its own copy, so the wrapper can be handed to a thread
    pool and called from several workers at once.
    """
    parent = contextvars.copy_context()

    def run_with_context(*args, **kwargs) -> T:
        return parent.copy().run(fn, *args, **kwargs)

    return run_with_context
