# countervalues/services/calculator.py
"""
Countervalue calculator.

Converts amounts expressed in the smallest unit of one currency into the
smallest unit of another, using the cached rates of the pair:

    forward:  value * rate * 10^(to.magnitude - from.magnitude)
    reverse:  value / rate * 10^(from.magnitude - to.magnitude)

In reverse mode the amount is in to_currency and the result in
from_currency; the pair key stays from -> to.

Results are rounded half-up to an integer unless rounding is disabled.
None means "no countervalue available", never 0.

Usage:
    from countervalues.services.calculator import ConversionQuery, calculate

    cents = calculate(
        state,
        ConversionQuery(value=100_000_000, from_currency=btc, to_currency=usd),
        currencies,
    )
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from countervalues.helpers import mag_from_to
from countervalues.protocols import CurrencyModule
from countervalues.services.lookup import lense_rate, lense_rate_map
from countervalues.types import CounterValuesState, Currency, PairRateMapCache


# =============================================================================
# QUERY TYPES
# =============================================================================

@dataclass(frozen=True)
class ConversionQuery:
    """
    One conversion request.

    Attributes:
        value: Amount in the smallest unit of the source currency
        from_currency: Pair source
        to_currency: Pair target
        date: Point in time; None means latest
        reverse: Convert to_currency -> from_currency using the same pair
        disable_rounding: Return the raw float
    """

    value: float
    from_currency: Currency
    to_currency: Currency
    date: datetime | None = None
    reverse: bool = False
    disable_rounding: bool = False


@dataclass(frozen=True)
class DataPoint:
    """A dated amount, as found in a balance history."""

    value: float
    date: datetime | None = None


# =============================================================================
# CALCULATIONS
# =============================================================================

def calculate(
        state: CounterValuesState,
        query: ConversionQuery,
        currencies: CurrencyModule,
) -> float | None:
    """
    Convert a single amount.

    A pair whose currencies are identical after aliasing returns the value
    unchanged, with or without cached rates.

    Returns:
        The converted amount, or None when the pair is not cached, no rate
        applies, or the rate is 0
    """
    from_currency, to_currency = currencies.alias_pair(
        query.from_currency, query.to_currency
    )
    if from_currency == to_currency:
        return query.value

    cache = lense_rate_map(state, from_currency, to_currency, currencies)
    if cache is None:
        return None

    return _convert(cache, query, from_currency, to_currency, query.value, query.date)


def calculate_many(
        state: CounterValuesState,
        data_points: Sequence[DataPoint],
        query: ConversionQuery,
        currencies: CurrencyModule,
) -> list[float | None]:
    """
    Convert a series of dated amounts with one pair resolution.

    query.value and query.date are ignored; each data point supplies its own.

    Returns:
        One result per data point, in order
    """
    from_currency, to_currency = currencies.alias_pair(
        query.from_currency, query.to_currency
    )
    if from_currency == to_currency:
        return [point.value for point in data_points]

    cache = lense_rate_map(state, from_currency, to_currency, currencies)
    if cache is None:
        return [None] * len(data_points)

    return [
        _convert(cache, query, from_currency, to_currency, point.value, point.date)
        for point in data_points
    ]


def _convert(
        cache: PairRateMapCache,
        query: ConversionQuery,
        from_currency: Currency,
        to_currency: Currency,
        value: float,
        date: datetime | None,
) -> float | None:
    rate = lense_rate(cache, date)
    if not rate:
        return None

    if query.reverse:
        result = (value / rate) * mag_from_to(to_currency, from_currency)
    else:
        result = value * rate * mag_from_to(from_currency, to_currency)

    if query.disable_rounding:
        return result
    return math.floor(result + 0.5)
