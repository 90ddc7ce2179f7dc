# countervalues/utils/context.py
"""
Sync-pass context management.

Each synchronization pass gets a sync id so that every log line it emits,
from every concurrently running fetch, can be tied back to the pass.

Uses Python's contextvars for async-safe storage that automatically
propagates into tasks created with asyncio.gather.

Usage:
    from countervalues.utils.context import sync_context, get_sync_id

    with sync_context():
        ...  # get_sync_id() returns the pass id here
"""

import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

_sync_id_var: ContextVar[str | None] = ContextVar("sync_id", default=None)


# =============================================================================
# SYNC ID
# =============================================================================

def get_sync_id() -> str | None:
    """
    Get the current pass's sync id.

    Returns:
        The sync id, or None outside of a pass.
    """
    return _sync_id_var.get()


def set_sync_id(sync_id: str) -> None:
    """Set the sync id for the current context."""
    _sync_id_var.set(sync_id)


def clear_sync_id() -> None:
    """Clear the sync id."""
    _sync_id_var.set(None)


def new_sync_id() -> str:
    """Short random id, enough to tell passes apart in logs."""
    return uuid.uuid4().hex[:12]


@contextmanager
def sync_context(sync_id: str | None = None) -> Iterator[str]:
    """
    Run a block under a sync id, restoring the previous one afterwards.

    Args:
        sync_id: Id to use. A new one is generated when omitted.

    Yields:
        The sync id in effect inside the block
    """
    value = sync_id or new_sync_id()
    token = _sync_id_var.set(value)
    try:
        yield value
    finally:
        _sync_id_var.reset(token)
