# countervalues/helpers.py
"""
Pair identity and date-bucket codec.

Bucket keys are fixed width and zero padded, so comparing two keys as
strings gives the same answer as comparing their dates. RateMapStats and
the lookup fallback rely on that; do not change the formats.

    daily   2024-01-05
    hourly  2024-01-05T09

Usage:
    from countervalues.helpers import pair_id, format_counter_value_day

    key = pair_id(btc, usd)                 # "BTC-USD"
    bucket = format_counter_value_day(now)  # "2024-01-05"
"""

from datetime import date, datetime, timedelta, timezone
from typing import Callable

from countervalues.constants import (
    DEFAULT_DAILY_DATAPOINT_LIMIT_DAYS,
    DEFAULT_HOURLY_DATAPOINT_LIMIT_DAYS,
)
from countervalues.types import Currency


# =============================================================================
# CLOCK
# =============================================================================

def utc_now() -> datetime:
    """Current time, timezone-aware UTC."""
    return datetime.now(timezone.utc)


def ensure_utc(value: datetime | date) -> datetime:
    """
    Normalize a date or datetime to an aware UTC datetime.

    Naive datetimes are taken to be UTC already. Plain dates map to midnight.
    """
    if not isinstance(value, datetime):
        return datetime(value.year, value.month, value.day, tzinfo=timezone.utc)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# =============================================================================
# PAIR IDENTITY
# =============================================================================

def pair_id(from_currency: Currency, to_currency: Currency) -> str:
    """Canonical, direction-significant key of a pair (e.g., "BTC-USD")."""
    return f"{from_currency.ticker}-{to_currency.ticker}"


def mag_from_to(a: Currency, b: Currency) -> float:
    """Factor converting a value in a's smallest unit to b's smallest unit."""
    return 10.0 ** (b.magnitude - a.magnitude)


# =============================================================================
# BUCKET FORMATS
# =============================================================================

def format_counter_value_day(value: datetime) -> str:
    """Daily bucket key, e.g. "2024-01-05"."""
    return ensure_utc(value).strftime("%Y-%m-%d")


def format_counter_value_hour(value: datetime) -> str:
    """Hourly bucket key, e.g. "2024-01-05T09"."""
    return ensure_utc(value).strftime("%Y-%m-%dT%H")


def parse_formatted_date(key: str) -> datetime:
    """
    Parse a daily or hourly bucket key back to a UTC datetime.

    Raises:
        ValueError: If the key is neither format
    """
    if "T" in key:
        parsed = datetime.strptime(key, "%Y-%m-%dT%H")
    else:
        parsed = datetime.strptime(key, "%Y-%m-%d")
    return parsed.replace(tzinfo=timezone.utc)


FORMAT_PER_GRANULARITY: dict[str, Callable[[datetime], str]] = {
    "daily": format_counter_value_day,
    "hourly": format_counter_value_hour,
}

INCREMENT_PER_GRANULARITY: dict[str, timedelta] = {
    "daily": timedelta(days=1),
    "hourly": timedelta(hours=1),
}

DATAPOINT_LIMITS: dict[str, timedelta] = {
    "daily": timedelta(days=DEFAULT_DAILY_DATAPOINT_LIMIT_DAYS),
    "hourly": timedelta(days=DEFAULT_HOURLY_DATAPOINT_LIMIT_DAYS),
}
