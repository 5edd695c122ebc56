"""Run context propagation for structured logs and traces."""

from __future__ import annotations

import contextvars
import uuid
from contextlib import contextmanager
from typing import Any, Iterator

# Context variable for storing the current run ID
run_id: contextvars.ContextVar[str | None] = contextvars.ContextVar("run_id", default=None)


def new_run_id() -> str:
    """Generate a short identifier for one deploy or sync run."""
    return uuid.uuid4().hex[:12]


def get_run_id() -> str | None:
    """Get the run ID from the current context.

    Returns:
        Run ID if set, None otherwise
    """
    return run_id.get()


@contextmanager
def with_run_id(value: str | None = None) -> Iterator[str]:
    """Context manager to set a run ID for the duration of a block.

    A run ID already set by an enclosing block is kept, so ``deploy`` and the
    ``sync`` it calls share one ID.

    Args:
        value: Run ID to use; generated when omitted

    Yields:
        The run ID in effect
    """
    current = run_id.get()
    if current is not None and value is None:
        yield current
        return

    token = run_id.set(value or new_run_id())
    try:
        yield run_id.get()  # type: ignore[misc]
    finally:
        run_id.reset(token)


def get_context_dict(additional: dict[str, Any] | None = None) -> dict[str, Any]:
    """Get a dictionary of context values.

    Args:
        additional: Additional key-value pairs to include

    Returns:
        Dictionary with context values including run_id
    """
    ctx: dict[str, Any] = {}

    current = get_run_id()
    if current:
        ctx["run_id"] = current

    if additional:
        ctx.update(additional)

    return ctx


def copy_context_for_worker() -> contextvars.Context:
    """Snapshot the current context so pool threads log with the same run ID."""
    return contextvars.copy_context()
