# countervalues/constants.py
"""
Centralized constants for the countervalues engine.

This module provides a single source of truth for the tuning values
used across the synchronization and lookup services. Centralizing these:

1. Prevents inconsistencies from duplicate definitions
2. Documents the meaning and units of each constant
3. Gives config.py a place to take its defaults from

Usage:
    from countervalues.constants import (
        DEFAULT_MAX_CONCURRENCY,
        MAX_RETRY_DELAY_SECONDS,
    )
"""

# =============================================================================
# RATE MAP KEYS
# =============================================================================

# Sentinel bucket holding the most recent known rate for a pair
LATEST_KEY: str = "latest"

# Reserved top-level key of the persisted state holding fetch statuses
STATUS_KEY: str = "status"

# Supported granularities, in the order a sync pass visits them
GRANULARITIES: tuple[str, ...] = ("daily", "hourly")


# =============================================================================
# FETCH SCHEDULING
# =============================================================================

# Maximum number of historical fetches in flight at once
DEFAULT_MAX_CONCURRENCY: int = 10

# Exponential backoff after HTTP failures: e^(failures * factor) seconds
RETRY_BACKOFF_FACTOR: float = 0.5

# Backoff ceiling (7 days, in seconds)
MAX_RETRY_DELAY_SECONDS: int = 7 * 24 * 60 * 60

# How far back each granularity may be requested (in days)
DEFAULT_DAILY_DATAPOINT_LIMIT_DAYS: int = 3650
DEFAULT_HOURLY_DATAPOINT_LIMIT_DAYS: int = 7


# =============================================================================
# HTTP PROVIDER
# =============================================================================

DEFAULT_API_BASE_URL: str = "https://countervalues.live.ledger.com"
DEFAULT_API_TIMEOUT_SECONDS: float = 30.0

# In-fetch retries for transport errors (tenacity)
DEFAULT_MAX_RETRY_ATTEMPTS: int = 3
DEFAULT_RETRY_MIN_WAIT: int = 1
DEFAULT_RETRY_MAX_WAIT: int = 10
