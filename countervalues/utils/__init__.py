# countervalues/utils/__init__.py
"""
Utility modules for the countervalues engine.

This package contains cross-cutting utilities:
- logging: Logging configuration with sync id support
- context: Sync-pass context (sync id) management
- batching: Bounded-concurrency async batch runner

Usage:
    from countervalues.utils import setup_logging
    from countervalues.utils import get_sync_id, sync_context
    from countervalues.utils import run_batched
"""

from countervalues.utils.batching import run_batched
from countervalues.utils.context import (
    get_sync_id,
    set_sync_id,
    clear_sync_id,
    sync_context,
)
from countervalues.utils.logging import setup_logging

__all__ = [
    # Logging
    "setup_logging",
    # Context
    "get_sync_id",
    "set_sync_id",
    "clear_sync_id",
    "sync_context",
    # Batching
    "run_batched",
]
