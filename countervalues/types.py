# countervalues/types.py
"""
Internal data types for the countervalues engine.

These dataclasses are the in-memory model. They are NOT Pydantic schemas;
the persisted (raw) shape is validated in countervalues/schemas.py.

Design Principles:
- Immutable where possible (frozen=True for value objects and snapshots)
- Datetimes are timezone-aware UTC
- Rates are plain floats, exactly as the provider returns them
- Optional fields use None, not sentinel values

Type Hierarchy:
    Currency, Account       - External domain objects (identity + magnitude)
    TrackingPair            - A request to track from -> to since a date
    RateMap                 - Raw bucket key -> rate mapping for one pair
    RateMapStats            - Oldest / most recent bucket of a RateMap
    PairRateMapCache        - Gap-filled lookup structure for one pair
    FetchStatus             - Per-pair fetch bookkeeping (backoff, depth)
    CounterValuesState      - data + status + cache snapshot
    FetchJob                - One planned historical fetch
    JobSuccess/JobFailure   - Typed outcome of one batched job
    SyncReport              - Summary of one synchronization pass
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Generic, TypeVar, Union

from countervalues.config import settings as app_settings

T = TypeVar("T")
R = TypeVar("R")

RateMap = dict[str, float]


# =============================================================================
# EXTERNAL DOMAIN OBJECTS
# =============================================================================

@dataclass(frozen=True)
class Currency:
    """
    A fiat or crypto currency.

    Attributes:
        ticker: Unique identity (e.g., "BTC", "USD")
        magnitude: Decimal places of the smallest unit (BTC = 8, USD = 2)
        name: Display name (optional)
    """

    ticker: str
    magnitude: int = 0
    name: str | None = None

    def __post_init__(self) -> None:
        if not self.ticker:
            raise ValueError("ticker is required")
        if self.magnitude < 0:
            raise ValueError(f"magnitude cannot be negative, got {self.magnitude}")


@dataclass(frozen=True)
class Account:
    """
    A wallet account. Only identity, currency and creation date are consumed.

    Token accounts hang off their parent as sub_accounts.
    """

    id: str
    currency: Currency
    creation_date: datetime | None = None
    sub_accounts: tuple[Account, ...] = ()


# =============================================================================
# TRACKING
# =============================================================================

@dataclass(frozen=True)
class TrackingPair:
    """
    Request to track rates for from_currency -> to_currency.

    Attributes:
        from_currency: Currency being valued
        to_currency: Countervalue currency
        start_date: Track no later than this date; None means "from now"
    """

    from_currency: Currency
    to_currency: Currency
    start_date: datetime | None = None


@dataclass(frozen=True)
class CountervaluesSettings:
    """
    Settings of one synchronization pass.

    autofill_gaps defaults to COUNTERVALUES_AUTOFILL_GAPS, read when the
    instance is created.
    """

    tracking_pairs: tuple[TrackingPair, ...] = ()
    autofill_gaps: bool = field(default_factory=lambda: app_settings.autofill_gaps)


# =============================================================================
# RATE MAP DERIVATIVES
# =============================================================================

@dataclass(frozen=True)
class RateMapStats:
    """
    Bounds of a RateMap, ignoring the "latest" key.

    Attributes:
        oldest: Lexicographically smallest bucket key
        earliest: Lexicographically largest bucket key (the most recent one)
        oldest_date: Parsed oldest
        earliest_date: Parsed earliest
    """

    oldest: str | None = None
    earliest: str | None = None
    oldest_date: datetime | None = None
    earliest_date: datetime | None = None


@dataclass(frozen=True)
class PairRateMapCache:
    """
    Lookup-ready structure derived from one pair's RateMap.

    Never persisted. Rebuilt whenever the raw RateMap changes.
    """

    map: RateMap
    stats: RateMapStats
    fallback: float | None = None


@dataclass(frozen=True)
class FetchStatus:
    """
    Fetch bookkeeping for one pair.

    Attributes:
        timestamp: Time of the last attempt that touched this status
        failures: Consecutive HTTP failures (drives backoff)
        oldest_date_requested: Oldest start date ever fetched successfully
    """

    timestamp: datetime | None = None
    failures: int = 0
    oldest_date_requested: datetime | None = None


# =============================================================================
# STATE
# =============================================================================

@dataclass(frozen=True)
class CounterValuesState:
    """
    Whole-state snapshot handed back to the caller after each pass.

    data and status are the persisted truth; cache is a pure function
    of data and is only ever rebuilt, never serialized.
    """

    data: dict[str, RateMap] = field(default_factory=dict)
    status: dict[str, FetchStatus] = field(default_factory=dict)
    cache: dict[str, PairRateMapCache] = field(default_factory=dict)


INITIAL_STATE = CounterValuesState()


# =============================================================================
# FETCH PLAN & BATCH OUTCOMES
# =============================================================================

@dataclass(frozen=True)
class FetchJob:
    """One historical fetch: granularity, requested window and target key."""

    granularity: str
    pair: TrackingPair
    key: str


@dataclass(frozen=True)
class JobSuccess(Generic[T, R]):
    """Worker returned normally."""

    item: T
    value: R

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class JobFailure(Generic[T]):
    """Worker raised; the exception is kept, not re-raised."""

    item: T
    error: BaseException

    @property
    def ok(self) -> bool:
        return False


JobResult = Union[JobSuccess[T, R], JobFailure[T]]


@dataclass
class SyncReport:
    """
    Result of one synchronization pass.

    Callers needing alerting should watch `failed` and the growth of
    status failures across passes; the pass itself never raises.
    """

    started_at: datetime
    jobs_planned: int = 0
    jobs_succeeded: int = 0
    jobs_failed: int = 0
    skipped_by_backoff: int = 0
    latest_updated: int = 0
    latest_failed: bool = False
    changed_keys: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.jobs_failed == 0 and not self.latest_failed

    def to_dict(self) -> dict[str, Any]:
        return {
            "started_at": self.started_at.isoformat(),
            "jobs_planned": self.jobs_planned,
            "jobs_succeeded": self.jobs_succeeded,
            "jobs_failed": self.jobs_failed,
            "skipped_by_backoff": self.skipped_by_backoff,
            "latest_updated": self.latest_updated,
            "latest_failed": self.latest_failed,
            "changed_keys": list(self.changed_keys),
            "errors": list(self.errors),
        }
