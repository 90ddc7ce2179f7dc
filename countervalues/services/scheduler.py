# countervalues/services/scheduler.py
"""
Historical fetch scheduler.

Decides, for every tracked pair and granularity (daily, then hourly),
which window still needs fetching:

1. Backoff: after HTTP failures, skip until
   timestamp + min(e^(0.5 * failures), 7 days)
2. Lower bound: start at the pair's start date (or now), clamped to the
   granularity's retention horizon
3. Older reload: if start is older than anything requested before, fetch
   from start regardless of what is cached
4. Otherwise only fetch from the most recent cached bucket onwards
5. Nothing to do when start falls in the current bucket

The planner is pure: it reads a state snapshot and returns jobs.
"""

import logging
import math
from collections.abc import Mapping
from datetime import datetime, timedelta

from countervalues.constants import (
    GRANULARITIES,
    MAX_RETRY_DELAY_SECONDS,
    RETRY_BACKOFF_FACTOR,
)
from countervalues.helpers import (
    DATAPOINT_LIMITS,
    FORMAT_PER_GRANULARITY,
    ensure_utc,
    pair_id,
)
from countervalues.services.cache import rate_map_stats
from countervalues.types import (
    CounterValuesState,
    CountervaluesSettings,
    FetchJob,
    RateMapStats,
    TrackingPair,
)

logger = logging.getLogger(__name__)


def retry_delay(failures: int) -> timedelta:
    """Backoff after `failures` consecutive HTTP failures, capped at 7 days."""
    seconds = min(
        math.exp(failures * RETRY_BACKOFF_FACTOR),
        MAX_RETRY_DELAY_SECONDS,
    )
    return timedelta(seconds=seconds)


def _cached_stats(state: CounterValuesState, key: str) -> RateMapStats | None:
    cache = state.cache.get(key)
    if cache is not None:
        return cache.stats
    raw = state.data.get(key)
    if raw:
        return rate_map_stats(raw)
    return None


def plan_historical_fetches(
        state: CounterValuesState,
        settings: CountervaluesSettings,
        now: datetime,
        datapoint_limits: Mapping[str, timedelta] | None = None,
) -> tuple[list[FetchJob], int]:
    """
    Compute the historical fetch plan of one pass.

    Args:
        state: Current snapshot (read only)
        settings: Pass settings; tracking_pairs are expected resolved
        now: Pass clock (UTC)
        datapoint_limits: Retention horizon per granularity.
                          Defaults to helpers.DATAPOINT_LIMITS.

    Returns:
        Tuple of (jobs in granularity-then-pair order,
                  number of pair/granularity slots skipped by backoff)
    """
    now = ensure_utc(now)
    limits = datapoint_limits or DATAPOINT_LIMITS
    jobs: list[FetchJob] = []
    skipped_by_backoff = 0

    for granularity in GRANULARITIES:
        format_bucket = FORMAT_PER_GRANULARITY[granularity]
        current_bucket = format_bucket(now)
        limit_date = now - limits[granularity]
        logger.debug(f"Planning {granularity} up to bucket {current_bucket}")

        for pair in settings.tracking_pairs:
            key = pair_id(pair.from_currency, pair.to_currency)
            status = state.status.get(key)

            # Slow down pairs the API keeps rejecting
            if status is not None and status.failures and status.timestamp:
                next_target = status.timestamp + retry_delay(status.failures)
                if now < next_target:
                    remaining = (next_target - now).total_seconds()
                    logger.debug(
                        f"{key}@{granularity} discarded: too many HTTP failures "
                        f"({status.failures}), retry in ~{round(remaining)}s"
                    )
                    skipped_by_backoff += 1
                    continue

            start = ensure_utc(pair.start_date) if pair.start_date else now
            if start < limit_date:
                start = limit_date

            need_older_reload = (
                status is not None
                and status.oldest_date_requested is not None
                and start < status.oldest_date_requested
            )
            if need_older_reload:
                logger.debug(
                    f"{key}@{granularity} need older reload "
                    f"({start.isoformat()} < {status.oldest_date_requested.isoformat()})"
                )
            else:
                # Known history is complete below the last bucket; ask only for the rest
                stats = _cached_stats(state, key)
                if stats is not None and stats.earliest_date and stats.earliest_date > start:
                    start = stats.earliest_date

            if format_bucket(start) == current_bucket:
                continue

            jobs.append(
                FetchJob(
                    granularity=granularity,
                    pair=TrackingPair(
                        from_currency=pair.from_currency,
                        to_currency=pair.to_currency,
                        start_date=start,
                    ),
                    key=key,
                )
            )

    logger.info(
        f"{len(jobs)} historical value(s) to fetch "
        f"({len(settings.tracking_pairs)} pairs, {skipped_by_backoff} in backoff)"
    )
    return jobs, skipped_by_backoff
