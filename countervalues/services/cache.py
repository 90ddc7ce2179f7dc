# countervalues/services/cache.py
"""
Rate cache builder.

Turns one pair's raw, sparse RateMap into the structure lookups run
against:
- stats: oldest and most recent bucket keys (computed on the raw map)
- map: a copy of the raw map with daily gaps forward-filled up to now
- fallback: the value to answer with for dates older than any data

Hourly buckets are never filled; a missing hour falls back to its day at
lookup time.

The cache is a pure function of (raw map, settings, now) and is rebuilt
whenever the raw map changes. It is never persisted.

Usage:
    from countervalues.services.cache import generate_cache

    cache = generate_cache(state.data["BTC-USD"], settings)
"""

import logging
from datetime import datetime

from countervalues.constants import LATEST_KEY
from countervalues.helpers import (
    INCREMENT_PER_GRANULARITY,
    format_counter_value_day,
    parse_formatted_date,
    utc_now,
)
from countervalues.types import (
    CountervaluesSettings,
    PairRateMapCache,
    RateMap,
    RateMapStats,
)

logger = logging.getLogger(__name__)


def rate_map_stats(rate_map: RateMap) -> RateMapStats:
    """
    Compute the bucket bounds of a RateMap.

    Keys sort chronologically as strings, so the smallest key is the oldest
    bucket and the largest is the most recent. "latest" is ignored.
    """
    keys = sorted(k for k in rate_map if k != LATEST_KEY)
    if not keys:
        return RateMapStats()

    oldest = keys[0]
    earliest = keys[-1]
    return RateMapStats(
        oldest=oldest,
        earliest=earliest,
        oldest_date=parse_formatted_date(oldest),
        earliest_date=parse_formatted_date(earliest),
    )


def generate_cache(
        rate_map: RateMap,
        settings: CountervaluesSettings,
        now: datetime | None = None,
) -> PairRateMapCache:
    """
    Build the lookup cache for one pair.

    With autofill_gaps on and at least one bucket, every day from the oldest
    bucket up to `now` that has no value takes the last value seen before it.
    If the map has no "latest", it gets the last carried value. The oldest
    bucket's value becomes the fallback.

    Otherwise fallback is map["latest"], or 0 when that is missing too.

    Args:
        rate_map: Raw bucket -> rate map (not modified)
        settings: Pass settings (autofill_gaps)
        now: Fill horizon. Defaults to the current UTC time.

    Returns:
        PairRateMapCache with a fresh map copy
    """
    filled = dict(rate_map)
    stats = rate_map_stats(filled)

    if not (settings.autofill_gaps and stats.oldest and stats.oldest_date):
        return PairRateMapCache(
            map=filled,
            stats=stats,
            fallback=filled.get(LATEST_KEY) or 0,
        )

    horizon = now or utc_now()
    step = INCREMENT_PER_GRANULARITY["daily"]

    shifting_value = filled[stats.oldest]
    fallback = shifting_value

    t = stats.oldest_date
    while t < horizon:
        day = format_counter_value_day(t)
        if day in filled:
            shifting_value = filled[day]
        else:
            filled[day] = shifting_value
        t += step

    if not filled.get(LATEST_KEY):
        filled[LATEST_KEY] = shifting_value

    logger.debug(
        f"Cache built: {len(rate_map)} raw buckets -> {len(filled)} filled "
        f"(oldest={stats.oldest}, earliest={stats.earliest})"
    )
    return PairRateMapCache(map=filled, stats=stats, fallback=fallback)


def merge_rate_maps(existing: RateMap | None, patch: RateMap) -> RateMap:
    """
    Additive merge of fetched buckets into a raw map.

    Returns a new dict. Buckets in `patch` overwrite the same buckets in
    `existing`; nothing is ever removed.
    """
    merged = dict(existing or {})
    merged.update(patch)
    return merged
