# tests/services/test_persistence.py
"""
Tests for export and import of the persisted state.
"""

import json

import pytest

from countervalues.exceptions import StateImportError
from countervalues.services.cache import generate_cache
from countervalues.services.persistence import export_countervalues, import_countervalues
from countervalues.types import CounterValuesState, FetchStatus
from tests.conftest import create_settings, utc


@pytest.fixture
def state(now):
    rates = {"2024-01-01": 100.0, "2024-01-03": 120.0, "latest": 125.0}
    return CounterValuesState(
        data={"BTC-USD": rates},
        status={
            "BTC-USD": FetchStatus(
                timestamp=now,
                failures=1,
                oldest_date_requested=utc(2024, 1, 1),
            )
        },
        cache={"BTC-USD": generate_cache(rates, create_settings(), now)},
    )


class TestExport:
    """Tests for export_countervalues."""

    def test_shape(self, state):
        raw = export_countervalues(state)

        assert set(raw) == {"BTC-USD", "status"}
        assert raw["BTC-USD"] == state.data["BTC-USD"]
        assert raw["status"]["BTC-USD"]["timestamp"] == 1704456000000
        assert raw["status"]["BTC-USD"]["failures"] == 1
        assert "oldestDateRequested" in raw["status"]["BTC-USD"]

    def test_rate_maps_copied(self, state):
        raw = export_countervalues(state)
        raw["BTC-USD"]["latest"] = 0.0

        assert state.data["BTC-USD"]["latest"] == 125.0

    def test_json_serializable(self, state):
        json.dumps(export_countervalues(state))

    def test_empty_status_fields_omitted(self):
        raw = export_countervalues(CounterValuesState(status={"BTC-USD": FetchStatus()}))

        assert raw["status"]["BTC-USD"] == {"failures": 0}


class TestImport:
    """Tests for import_countervalues."""

    def test_roundtrip_through_json(self, state, now):
        raw = json.loads(json.dumps(export_countervalues(state)))

        imported = import_countervalues(raw, create_settings(), now)

        assert imported.data == state.data
        assert imported.status == state.status
        assert imported.cache == state.cache

    def test_missing_status(self, now):
        imported = import_countervalues({"BTC-USD": {"latest": 1.0}}, create_settings(), now)

        assert imported.status == {}
        assert "BTC-USD" in imported.cache

    def test_integer_rates_accepted(self, now):
        imported = import_countervalues({"BTC-USD": {"2024-01-01": 100}}, create_settings(), now)

        assert imported.data["BTC-USD"]["2024-01-01"] == 100.0

    def test_invalid_rate_map(self, now):
        with pytest.raises(StateImportError) as exc_info:
            import_countervalues({"BTC-USD": {"Jan 1": 1.0}}, create_settings(), now)

        assert exc_info.value.key == "BTC-USD"

    def test_invalid_status(self, now):
        raw = {"status": {"BTC-USD": {"failures": -1}}}

        with pytest.raises(StateImportError) as exc_info:
            import_countervalues(raw, create_settings(), now)

        assert exc_info.value.key == "status"
