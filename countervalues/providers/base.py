# countervalues/providers/base.py
"""
Abstract interface for countervalues providers.

This module defines the contract the sync service relies on:
- fetch_historical: one pair, one granularity, from a start date
- fetch_latest: one batched call for every tracked pair

Failure contract:
- Raise an exception with an integer `status` attribute for HTTP failures
  (they drive per-pair backoff)
- Raise an exception without a status for transport failures (they are
  retried on the next pass, no backoff)

The base class also provides `_execute_with_retry`, which retries
transport failures inside a single fetch with exponential backoff.
HTTP failures are NOT retried here; pass-level backoff handles them.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable, Sequence
from typing import Any, TypeVar

from tenacity import (
    before_sleep_log,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from countervalues.constants import (
    DEFAULT_MAX_RETRY_ATTEMPTS,
    DEFAULT_RETRY_MAX_WAIT,
    DEFAULT_RETRY_MIN_WAIT,
)
from countervalues.exceptions import ProviderUnavailableError
from countervalues.types import RateMap, TrackingPair

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CountervaluesProvider(ABC):
    """
    Abstract base class for countervalues providers.

    Retry Behavior:
        `_execute_with_retry` retries ProviderUnavailableError with
        exponential backoff. Subclasses tune it through class attributes
        or instance attributes of the same name:

        - MAX_RETRY_ATTEMPTS: Total attempts (default: 3)
        - RETRY_MIN_WAIT: Minimum wait in seconds (default: 1)
        - RETRY_MAX_WAIT: Maximum wait in seconds (default: 10)
        - RETRY_MULTIPLIER: Exponential multiplier (default: 1)
    """

    MAX_RETRY_ATTEMPTS: int = DEFAULT_MAX_RETRY_ATTEMPTS
    RETRY_MIN_WAIT: int = DEFAULT_RETRY_MIN_WAIT
    RETRY_MAX_WAIT: int = DEFAULT_RETRY_MAX_WAIT
    RETRY_MULTIPLIER: int = 1

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique identifier for this provider, used in logs and errors."""
        pass

    @abstractmethod
    async def fetch_historical(
            self,
            granularity: str,
            pair: TrackingPair,
    ) -> RateMap:
        """
        Fetch historical buckets for one pair.

        Args:
            granularity: "daily" or "hourly"
            pair: Pair with the start date of the window

        Returns:
            Bucket key -> rate for the window

        Raises:
            ProviderHTTPError: API answered with an error status
            ProviderUnavailableError: API could not be reached
            InvalidRateDataError: API answered with an unusable body
        """
        pass

    @abstractmethod
    async def fetch_latest(
            self,
            pairs: Sequence[TrackingPair],
    ) -> list[float | None]:
        """
        Fetch the latest rate of every pair in one call.

        Returns:
            Rates aligned positionally with `pairs` (None when unknown)
        """
        pass

    async def _execute_with_retry(
            self,
            func: Callable[..., Awaitable[T]],
            *args: Any,
            **kwargs: Any,
    ) -> T:
        """
        Await `func` with retries on transport failures.

        Raises:
            The last exception if all retries fail
        """

        @retry(
            stop=stop_after_attempt(self.MAX_RETRY_ATTEMPTS),
            wait=wait_exponential(
                multiplier=self.RETRY_MULTIPLIER,
                min=self.RETRY_MIN_WAIT,
                max=self.RETRY_MAX_WAIT,
            ),
            retry=retry_if_exception_type(ProviderUnavailableError),
            before_sleep=before_sleep_log(logger, logging.WARNING),
            reraise=True,
        )
        async def _inner() -> T:
            return await func(*args, **kwargs)

        return await _inner()

    async def aclose(self) -> None:
        """Release provider resources. Default implementation has none."""
        return None
