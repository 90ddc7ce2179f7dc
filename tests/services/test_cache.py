# tests/services/test_cache.py
"""
Tests for the rate cache builder.
"""

from countervalues.config import settings as app_settings
from countervalues.services.cache import generate_cache, merge_rate_maps, rate_map_stats
from countervalues.types import CountervaluesSettings, RateMapStats
from tests.conftest import create_settings, utc


class TestRateMapStats:
    """Tests for rate_map_stats."""

    def test_empty_map(self):
        assert rate_map_stats({}) == RateMapStats()

    def test_latest_only(self):
        assert rate_map_stats({"latest": 5.0}) == RateMapStats()

    def test_bounds_ignore_latest(self):
        stats = rate_map_stats({"2024-01-03": 2.0, "latest": 3.0, "2024-01-01": 1.0})

        assert stats.oldest == "2024-01-01"
        assert stats.earliest == "2024-01-03"
        assert stats.oldest_date == utc(2024, 1, 1)
        assert stats.earliest_date == utc(2024, 1, 3)

    def test_hourly_bucket_is_most_recent(self):
        stats = rate_map_stats({"2024-01-03": 2.0, "2024-01-03T10": 2.1})

        assert stats.earliest == "2024-01-03T10"
        assert stats.earliest_date == utc(2024, 1, 3, 10)


class TestGenerateCache:
    """Tests for generate_cache."""

    def test_forward_fills_gaps(self, now):
        raw = {"2024-01-01": 100.0, "2024-01-04": 130.0}

        cache = generate_cache(raw, create_settings(), now)

        assert cache.map["2024-01-02"] == 100.0
        assert cache.map["2024-01-03"] == 100.0
        assert cache.map["2024-01-04"] == 130.0
        assert cache.map["2024-01-05"] == 130.0
        assert cache.map["latest"] == 130.0
        assert cache.fallback == 100.0

    def test_stops_before_now(self):
        raw = {"2024-01-01": 100.0}

        cache = generate_cache(raw, create_settings(), utc(2024, 1, 3))

        assert "2024-01-02" in cache.map
        assert "2024-01-03" not in cache.map

    def test_existing_latest_kept(self, now):
        raw = {"2024-01-01": 100.0, "latest": 150.0}

        cache = generate_cache(raw, create_settings(), now)

        assert cache.map["latest"] == 150.0

    def test_stats_describe_raw_map(self, now):
        raw = {"2024-01-01": 100.0, "2024-01-02": 110.0}

        cache = generate_cache(raw, create_settings(), now)

        assert cache.stats.earliest == "2024-01-02"

    def test_hourly_buckets_not_filled(self, now):
        raw = {"2024-01-01": 100.0, "2024-01-01T05": 101.0}

        cache = generate_cache(raw, create_settings(), now)

        assert [k for k in cache.map if "T" in k] == ["2024-01-01T05"]

    def test_raw_map_not_mutated(self, now):
        raw = {"2024-01-01": 100.0}

        generate_cache(raw, create_settings(), now)

        assert raw == {"2024-01-01": 100.0}

    def test_autofill_disabled(self, now):
        raw = {"2024-01-01": 100.0, "2024-01-04": 130.0, "latest": 140.0}

        cache = generate_cache(raw, create_settings(autofill_gaps=False), now)

        assert cache.map == raw
        assert cache.fallback == 140.0

    def test_autofill_defaults_to_app_settings(self, monkeypatch, now):
        monkeypatch.setattr(app_settings, "autofill_gaps", False)
        raw = {"2024-01-01": 100.0, "2024-01-04": 130.0}

        settings = CountervaluesSettings()
        cache = generate_cache(raw, settings, now)

        assert settings.autofill_gaps is False
        assert cache.map == raw
        assert cache.fallback == 0

    def test_explicit_autofill_overrides_app_settings(self, monkeypatch, now):
        monkeypatch.setattr(app_settings, "autofill_gaps", False)

        cache = generate_cache(
            {"2024-01-01": 100.0}, CountervaluesSettings(autofill_gaps=True), now
        )

        assert cache.map["2024-01-03"] == 100.0

    def test_autofill_disabled_without_latest(self, now):
        cache = generate_cache({"2024-01-01": 100.0}, create_settings(autofill_gaps=False), now)

        assert cache.fallback == 0

    def test_empty_map(self, now):
        cache = generate_cache({}, create_settings(), now)

        assert cache.map == {}
        assert cache.fallback == 0
        assert cache.stats == RateMapStats()


class TestMergeRateMaps:
    """Tests for merge_rate_maps."""

    def test_patch_overwrites_and_adds(self):
        existing = {"2024-01-01": 1.0, "2024-01-02": 2.0}

        merged = merge_rate_maps(existing, {"2024-01-02": 2.5, "latest": 3.0})

        assert merged == {"2024-01-01": 1.0, "2024-01-02": 2.5, "latest": 3.0}
        assert existing == {"2024-01-01": 1.0, "2024-01-02": 2.0}

    def test_no_existing_map(self):
        assert merge_rate_maps(None, {"latest": 3.0}) == {"latest": 3.0}
