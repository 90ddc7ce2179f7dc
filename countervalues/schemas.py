# countervalues/schemas.py
"""
Pydantic schemas for data crossing the engine boundary.

These schemas handle:
- Persisted state (rate maps and fetch statuses) on import
- HTTP provider payloads (historical rate maps, latest rate lists)

The persisted status uses camelCase field names (oldestDateRequested) and
an epoch-millisecond timestamp, the format existing stores are written in.
"""

import datetime as dt
import re

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

from countervalues.constants import LATEST_KEY
from countervalues.helpers import ensure_utc
from countervalues.types import FetchStatus

_BUCKET_KEY = re.compile(r"^\d{4}-\d{2}-\d{2}(T\d{2})?$")
_EPOCH = dt.datetime(1970, 1, 1, tzinfo=dt.timezone.utc)
_ONE_MS = dt.timedelta(milliseconds=1)


# =============================================================================
# RATE MAPS
# =============================================================================

class RateMapPayload(RootModel[dict[str, float]]):
    """Bucket key -> rate. Keys must be daily, hourly or "latest"."""

    @field_validator("root")
    @classmethod
    def validate_keys(cls, v: dict[str, float]) -> dict[str, float]:
        """Reject keys that would break lexicographic ordering."""
        for key in v:
            if key != LATEST_KEY and not _BUCKET_KEY.match(key):
                raise ValueError(f"Invalid bucket key: '{key}'")
        return v


class LatestRatesPayload(RootModel[list[float | None]]):
    """Latest rates, positionally aligned with the requested pairs."""
    pass


# =============================================================================
# FETCH STATUS
# =============================================================================

class FetchStatusRaw(BaseModel):
    """
    Persisted form of FetchStatus.

    The timestamp is stored in whole milliseconds; anything finer is dropped.
    """

    timestamp: int | None = Field(
        default=None,
        description="Last attempt, epoch milliseconds"
    )
    failures: int = Field(default=0, ge=0, description="Consecutive HTTP failures")
    oldest_date_requested: dt.datetime | None = Field(
        default=None,
        alias="oldestDateRequested",
        description="Oldest start date ever fetched (ISO-8601)"
    )

    model_config = ConfigDict(populate_by_name=True)

    def to_status(self) -> FetchStatus:
        return FetchStatus(
            timestamp=(
                _EPOCH + dt.timedelta(milliseconds=self.timestamp)
                if self.timestamp is not None else None
            ),
            failures=self.failures,
            oldest_date_requested=(
                ensure_utc(self.oldest_date_requested)
                if self.oldest_date_requested is not None else None
            ),
        )

    @classmethod
    def from_status(cls, status: FetchStatus) -> "FetchStatusRaw":
        return cls(
            timestamp=(
                (ensure_utc(status.timestamp) - _EPOCH) // _ONE_MS
                if status.timestamp is not None else None
            ),
            failures=status.failures,
            oldest_date_requested=status.oldest_date_requested,
        )

    def to_raw(self) -> dict:
        """Plain JSON-ready dict, absent fields omitted."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class StatusMapPayload(RootModel[dict[str, FetchStatusRaw]]):
    """PairKey -> persisted FetchStatus."""
    pass
