# tests/conftest.py
"""
Pytest configuration and fixtures.

This module provides shared fixtures for all tests:
- Mock provider fixture (configurable historical and latest responses)
- Currency fixtures with realistic magnitudes
- A fixed pass clock
- Sample data factories
"""

import os

os.environ.setdefault("COUNTERVALUES_ENVIRONMENT", "test")

from collections.abc import Sequence
from datetime import datetime, timezone

import pytest

from countervalues.currencies import DefaultCurrencyModule
from countervalues.helpers import pair_id
from countervalues.providers.base import CountervaluesProvider
from countervalues.types import (
    CountervaluesSettings,
    Currency,
    RateMap,
    TrackingPair,
)


# =============================================================================
# MOCK COUNTERVALUES PROVIDER
# =============================================================================

class MockCountervaluesProvider(CountervaluesProvider):
    """
    Mock implementation of CountervaluesProvider for testing.

    Allows configuring responses per (granularity, pair key) and simulating
    errors. Every call is recorded.
    """

    def __init__(self):
        self._historical: dict[tuple[str, str], RateMap] = {}
        self._historical_errors: dict[tuple[str, str], Exception] = {}
        self._latest: dict[str, float | None] = {}
        self._latest_error: Exception | None = None
        self.historical_calls: list[tuple[str, str, datetime | None]] = []
        self.latest_calls: list[list[str]] = []

    @property
    def name(self) -> str:
        return "mock"

    def set_historical(self, granularity: str, key: str, rates: RateMap) -> None:
        """Configure a successful historical response."""
        self._historical[(granularity, key)] = rates

    def set_historical_error(self, granularity: str, key: str, error: Exception) -> None:
        """Configure a historical fetch to raise."""
        self._historical_errors[(granularity, key)] = error

    def set_latest(self, key: str, rate: float | None) -> None:
        """Configure the latest rate returned for a pair."""
        self._latest[key] = rate

    def set_latest_error(self, error: Exception | None) -> None:
        """Configure the latest call to raise."""
        self._latest_error = error

    def reset_calls(self) -> None:
        self.historical_calls.clear()
        self.latest_calls.clear()

    async def fetch_historical(self, granularity: str, pair: TrackingPair) -> RateMap:
        key = pair_id(pair.from_currency, pair.to_currency)
        self.historical_calls.append((granularity, key, pair.start_date))

        if (granularity, key) in self._historical_errors:
            raise self._historical_errors[(granularity, key)]

        return dict(self._historical.get((granularity, key), {}))

    async def fetch_latest(self, pairs: Sequence[TrackingPair]) -> list[float | None]:
        keys = [pair_id(p.from_currency, p.to_currency) for p in pairs]
        self.latest_calls.append(keys)

        if self._latest_error is not None:
            raise self._latest_error

        return [self._latest.get(key) for key in keys]


@pytest.fixture
def mock_provider() -> MockCountervaluesProvider:
    """Create a fresh mock provider for each test."""
    return MockCountervaluesProvider()


# =============================================================================
# CURRENCIES & CLOCK
# =============================================================================

@pytest.fixture
def btc() -> Currency:
    return Currency(ticker="BTC", magnitude=8, name="Bitcoin")


@pytest.fixture
def eth() -> Currency:
    return Currency(ticker="ETH", magnitude=18, name="Ethereum")


@pytest.fixture
def usd() -> Currency:
    return Currency(ticker="USD", magnitude=2, name="US Dollar")


@pytest.fixture
def eur() -> Currency:
    return Currency(ticker="EUR", magnitude=2, name="Euro")


@pytest.fixture
def currencies() -> DefaultCurrencyModule:
    """Currency rules without aliases or disabled tickers."""
    return DefaultCurrencyModule()


@pytest.fixture
def now() -> datetime:
    """Fixed pass clock: 2024-01-05 12:00 UTC."""
    return datetime(2024, 1, 5, 12, 0, tzinfo=timezone.utc)


# =============================================================================
# SAMPLE DATA FACTORIES
# =============================================================================

def utc(*args: int) -> datetime:
    """Shorthand for an aware UTC datetime."""
    return datetime(*args, tzinfo=timezone.utc)


def create_settings(
        *pairs: TrackingPair,
        autofill_gaps: bool = True,
) -> CountervaluesSettings:
    """Factory function for pass settings."""
    return CountervaluesSettings(tracking_pairs=tuple(pairs), autofill_gaps=autofill_gaps)
