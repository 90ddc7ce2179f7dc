# countervalues/services/lookup.py
"""
Point-in-time rate lookup.

Resolution order for a dated query:
1. Hourly bucket of the date
2. Daily bucket of the date
3. "latest", if the date is more recent than any cached bucket
4. The cache fallback (the date predates all known data)

Undated queries return "latest". No value is signalled with None; lookups
never raise.
"""

from datetime import datetime

from countervalues.constants import LATEST_KEY
from countervalues.helpers import (
    format_counter_value_day,
    format_counter_value_hour,
    pair_id,
)
from countervalues.protocols import CurrencyModule
from countervalues.types import CounterValuesState, Currency, PairRateMapCache


def lense_rate_map(
        state: CounterValuesState,
        from_currency: Currency,
        to_currency: Currency,
        currencies: CurrencyModule,
) -> PairRateMapCache | None:
    """
    Locate the cache entry of a pair.

    Returns None when either currency has countervalues disabled or the
    pair was never synchronized.
    """
    if not currencies.is_countervalue_enabled(from_currency):
        return None
    if not currencies.is_countervalue_enabled(to_currency):
        return None
    return state.cache.get(pair_id(from_currency, to_currency))


def lense_rate(
        cache: PairRateMapCache,
        date: datetime | None = None,
) -> float | None:
    """
    Resolve the rate of a cached pair at `date` (or now when omitted).

    Returns:
        The rate, or None when nothing applies
    """
    rates = cache.map
    if date is None:
        return rates.get(LATEST_KEY)

    hour_key = format_counter_value_hour(date)
    if hour_key in rates:
        return rates[hour_key]

    day_key = format_counter_value_day(date)
    if day_key in rates:
        return rates[day_key]

    if cache.stats.earliest and day_key > cache.stats.earliest:
        return rates.get(LATEST_KEY)

    return cache.fallback
