# countervalues/services/sync_service.py
"""
Countervalues Sync Service for incremental rate synchronization.

This service handles:
- Planning which historical windows are due (via the scheduler)
- Fetching them with bounded concurrency, alongside one batched
  latest-rate request
- Merging results into the raw rate store
- Updating per-pair fetch status (backoff bookkeeping)
- Rebuilding the cache of every pair whose raw map changed

Design Principles:
- State in, state out: the input snapshot is never mutated
- Partial Success: one failing fetch never fails the pass
- All state changes happen after every request has settled
- Dependency Injection: provider and currency rules via constructor

Usage:
    from countervalues.services import CountervaluesSyncService

    service = CountervaluesSyncService(provider, currencies)

    pairs = service.infer_tracking_pairs(accounts, usd)
    settings = CountervaluesSettings(tracking_pairs=tuple(pairs))

    state = await service.load_countervalues(state, settings)

    # Or, to inspect what happened
    state, report = await service.sync(state, settings)
"""

import asyncio
import logging
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timedelta

from countervalues.config import settings as app_settings
from countervalues.constants import GRANULARITIES, LATEST_KEY
from countervalues.currencies import DefaultCurrencyModule
from countervalues.exceptions import ConfigurationError
from countervalues.helpers import ensure_utc, pair_id, utc_now
from countervalues.protocols import CurrencyModule
from countervalues.providers.base import CountervaluesProvider
from countervalues.services.cache import generate_cache, merge_rate_maps
from countervalues.services.resolver import (
    infer_tracking_pairs_for_accounts,
    resolve_tracking_pairs,
)
from countervalues.services.scheduler import plan_historical_fetches
from countervalues.types import (
    Account,
    CounterValuesState,
    CountervaluesSettings,
    Currency,
    FetchJob,
    FetchStatus,
    RateMap,
    SyncReport,
    TrackingPair,
)
from countervalues.utils.batching import run_batched
from countervalues.utils.context import sync_context

logger = logging.getLogger(__name__)


class CountervaluesSyncService:
    """
    Orchestrates one synchronization pass at a time.

    The service holds no state of its own between passes; the caller owns
    the CounterValuesState and must not run two passes against the same
    snapshot concurrently.

    Attributes:
        _provider: Source of historical and latest rates
        _currencies: Aliasing and enablement rules
        _concurrency: Max historical fetches in flight
        _datapoint_limits: Retention horizon per granularity

    Example:
        service = CountervaluesSyncService(HttpCountervaluesProvider())
        state, report = await service.sync(INITIAL_STATE, settings)
        print(f"{report.jobs_succeeded}/{report.jobs_planned} fetched")
    """

    def __init__(
            self,
            provider: CountervaluesProvider,
            currencies: CurrencyModule | None = None,
            concurrency: int | None = None,
            datapoint_limits: Mapping[str, timedelta] | None = None,
    ) -> None:
        """
        Initialize the sync service.

        Args:
            provider: Countervalues provider
            currencies: Currency rules (defaults to DefaultCurrencyModule())
            concurrency: Max historical fetches in flight
                         (defaults to settings.max_concurrency)
            datapoint_limits: Retention horizon per granularity
                              (defaults to settings.datapoint_limits)

        Raises:
            ConfigurationError: concurrency below 1, or a granularity
                                without a datapoint limit
        """
        self._provider = provider
        self._currencies = currencies or DefaultCurrencyModule()
        self._concurrency = (
            concurrency if concurrency is not None else app_settings.max_concurrency
        )
        self._datapoint_limits = dict(datapoint_limits or app_settings.datapoint_limits)

        if self._concurrency < 1:
            raise ConfigurationError(f"concurrency must be at least 1, got {self._concurrency}")
        missing = [g for g in GRANULARITIES if g not in self._datapoint_limits]
        if missing:
            raise ConfigurationError(f"No datapoint limit for: {', '.join(missing)}")

        logger.info(
            f"CountervaluesSyncService initialized "
            f"(provider={provider.name}, concurrency={self._concurrency})"
        )

    # =========================================================================
    # TRACKING PAIRS
    # =========================================================================

    def resolve_tracking_pairs(self, pairs: Iterable[TrackingPair]) -> list[TrackingPair]:
        """Dedup and alias raw tracking requests with this service's rules."""
        return resolve_tracking_pairs(pairs, self._currencies)

    def infer_tracking_pairs(
            self,
            accounts: Iterable[Account],
            countervalue: Currency,
    ) -> list[TrackingPair]:
        """Tracking pairs needed to value `accounts` in `countervalue`."""
        return infer_tracking_pairs_for_accounts(accounts, countervalue, self._currencies)

    # =========================================================================
    # MAIN SYNC METHODS
    # =========================================================================

    async def load_countervalues(
            self,
            state: CounterValuesState,
            settings: CountervaluesSettings,
            now: datetime | None = None,
    ) -> CounterValuesState:
        """Run one pass and return the new state."""
        new_state, _ = await self.sync(state, settings, now)
        return new_state

    async def sync(
            self,
            state: CounterValuesState,
            settings: CountervaluesSettings,
            now: datetime | None = None,
    ) -> tuple[CounterValuesState, SyncReport]:
        """
        Run one synchronization pass.

        Steps:
        1. Plan historical jobs from the current state
        2. Run the historical batch and the latest-rate request concurrently
        3. Fold job outcomes into fetch statuses
        4. Merge every patch into the raw data, in plan order then latest
        5. Rebuild the cache of each changed pair

        Args:
            state: Snapshot to start from (not modified)
            settings: Tracking pairs (already resolved) and cache options
            now: Pass clock. Defaults to the current UTC time.

        Returns:
            Tuple of (new state, pass report). Never raises for fetch failures.
        """
        now = ensure_utc(now) if now else utc_now()
        # Persisted timestamps keep millisecond precision
        now = now.replace(microsecond=now.microsecond // 1000 * 1000)

        with sync_context():
            report = SyncReport(started_at=now)

            jobs, skipped = plan_historical_fetches(
                state, settings, now, self._datapoint_limits
            )
            report.jobs_planned = len(jobs)
            report.skipped_by_backoff = skipped

            histo, latest_patches = await asyncio.gather(
                run_batched(self._concurrency, jobs, self._fetch_job),
                self._fetch_latest_patches(state, settings.tracking_pairs),
            )

            status = dict(state.status)
            patches: list[tuple[str, RateMap]] = []

            for result in histo:
                job = result.item
                if result.ok:
                    patches.append((job.key, result.value))
                    status[job.key] = _status_after_success(status.get(job.key), job, now)
                    report.jobs_succeeded += 1
                    continue

                report.jobs_failed += 1
                failed_status = _status_after_failure(status.get(job.key), result.error, now)
                if failed_status is not None:
                    status[job.key] = failed_status
                message = (
                    f"Failed to fetch {job.granularity} history for {job.key}: {result.error}"
                )
                report.errors.append(message)
                logger.error(message)

            if latest_patches is None:
                report.latest_failed = True
            else:
                report.latest_updated = len(latest_patches)
                patches.extend(latest_patches)

            logger.info(f"{len(patches)} update(s) to apply")

            data = dict(state.data)
            changed: dict[str, None] = {}
            for key, patch in patches:
                data[key] = merge_rate_maps(data.get(key), patch)
                changed[key] = None

            cache = dict(state.cache)
            for key in changed:
                cache[key] = generate_cache(data[key], settings, now)

            report.changed_keys = list(changed)

            logger.info(
                f"Sync pass done: planned={report.jobs_planned}, "
                f"succeeded={report.jobs_succeeded}, failed={report.jobs_failed}, "
                f"backoff={report.skipped_by_backoff}, latest={report.latest_updated}, "
                f"changed={len(changed)}"
            )

            return CounterValuesState(data=data, status=status, cache=cache), report

    # =========================================================================
    # PRIVATE METHODS - Provider calls
    # =========================================================================

    async def _fetch_job(self, job: FetchJob) -> RateMap:
        return await self._provider.fetch_historical(job.granularity, job.pair)

    async def _fetch_latest_patches(
            self,
            state: CounterValuesState,
            pairs: Sequence[TrackingPair],
    ) -> list[tuple[str, RateMap]] | None:
        """
        Fetch latest rates and keep only those that changed.

        Returns:
            (key, {"latest": rate}) patches, or None if the request failed
        """
        if not pairs:
            return []

        try:
            rates = await self._provider.fetch_latest(list(pairs))
        except Exception as e:
            keys = ",".join(pair_id(p.from_currency, p.to_currency) for p in pairs)
            logger.error(f"Failed to fetch latest for {keys}: {e}")
            return None

        patches: list[tuple[str, RateMap]] = []
        for pair, rate in zip(pairs, rates):
            if rate is None:
                continue
            key = pair_id(pair.from_currency, pair.to_currency)
            if state.data.get(key, {}).get(LATEST_KEY) == rate:
                continue
            patches.append((key, {LATEST_KEY: rate}))
        return patches


# =============================================================================
# STATUS TRANSITIONS
# =============================================================================

def _status_after_success(
        current: FetchStatus | None,
        job: FetchJob,
        now: datetime,
) -> FetchStatus:
    """Clear the failure streak and deepen oldest_date_requested if needed."""
    oldest = current.oldest_date_requested if current else None
    start = job.pair.start_date
    if start is not None and (oldest is None or start < oldest):
        oldest = start
    return FetchStatus(timestamp=now, failures=0, oldest_date_requested=oldest)


def _status_after_failure(
        current: FetchStatus | None,
        error: BaseException,
        now: datetime,
) -> FetchStatus | None:
    """
    Count HTTP failures only.

    Returns:
        The new status, or None when the error has no integer HTTP status
        (network down, bad payload). The stored status must then be left
        as is so the pair is retried next pass without backoff.
    """
    http_status = getattr(error, "status", None)
    if not isinstance(http_status, int) or isinstance(http_status, bool) or not http_status:
        return None
    return FetchStatus(
        timestamp=now,
        failures=(current.failures if current else 0) + 1,
        oldest_date_requested=current.oldest_date_requested if current else None,
    )
