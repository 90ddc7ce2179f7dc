# tests/services/test_lookup.py
"""
Tests for point-in-time rate lookups.
"""

import pytest

from countervalues.currencies import DefaultCurrencyModule
from countervalues.services.cache import generate_cache
from countervalues.services.lookup import lense_rate, lense_rate_map
from countervalues.types import CounterValuesState
from tests.conftest import create_settings, utc

RAW = {
    "2024-01-01": 100.0,
    "2024-01-03": 120.0,
    "2024-01-03T10": 121.0,
    "latest": 150.0,
}


@pytest.fixture
def filled_cache(now):
    return generate_cache(RAW, create_settings(), now)


@pytest.fixture
def sparse_cache(now):
    return generate_cache(RAW, create_settings(autofill_gaps=False), now)


class TestLenseRate:
    """Tests for lense_rate resolution order."""

    def test_undated_returns_latest(self, filled_cache):
        assert lense_rate(filled_cache) == 150.0

    def test_hourly_bucket_wins(self, filled_cache):
        assert lense_rate(filled_cache, utc(2024, 1, 3, 10, 30)) == 121.0

    def test_daily_bucket_when_hour_missing(self, filled_cache):
        assert lense_rate(filled_cache, utc(2024, 1, 3, 11)) == 120.0

    def test_filled_day(self, filled_cache):
        assert lense_rate(filled_cache, utc(2024, 1, 2)) == 100.0

    def test_before_history_uses_fallback(self, filled_cache):
        assert lense_rate(filled_cache, utc(2023, 12, 1)) == 100.0

    def test_after_history_uses_latest(self, filled_cache):
        assert lense_rate(filled_cache, utc(2024, 2, 1)) == 150.0

    def test_sparse_gap_after_history_uses_latest(self, sparse_cache):
        assert lense_rate(sparse_cache, utc(2024, 1, 4)) == 150.0

    def test_sparse_gap_inside_history_uses_fallback(self, sparse_cache):
        # Fallback of an unfilled cache is "latest"
        assert lense_rate(sparse_cache, utc(2024, 1, 2)) == 150.0

    def test_no_latest(self, now):
        cache = generate_cache({}, create_settings(), now)

        assert lense_rate(cache) is None


class TestLenseRateMap:
    """Tests for lense_rate_map."""

    def test_found(self, btc, usd, currencies, filled_cache):
        state = CounterValuesState(cache={"BTC-USD": filled_cache})

        assert lense_rate_map(state, btc, usd, currencies) is filled_cache

    def test_direction_matters(self, btc, usd, currencies, filled_cache):
        state = CounterValuesState(cache={"BTC-USD": filled_cache})

        assert lense_rate_map(state, usd, btc, currencies) is None

    def test_disabled_currency(self, btc, usd, filled_cache):
        state = CounterValuesState(cache={"BTC-USD": filled_cache})
        currencies = DefaultCurrencyModule(disabled={"USD"})

        assert lense_rate_map(state, btc, usd, currencies) is None
