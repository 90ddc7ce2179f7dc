# countervalues/services/persistence.py
"""
Export and import of the persisted countervalues state.

Persisted shape (plain JSON-ready dict):

    {
        "BTC-USD": {"2024-01-01": 42000.5, "latest": 43000.1},
        "status": {
            "BTC-USD": {
                "timestamp": 1704412800000,
                "failures": 0,
                "oldestDateRequested": "2023-01-01T00:00:00Z"
            }
        }
    }

Only data and status are written. The cache is rebuilt on import.
"""

import logging
from datetime import datetime
from typing import Any, Mapping

from pydantic import ValidationError

from countervalues.constants import STATUS_KEY
from countervalues.exceptions import StateImportError
from countervalues.schemas import FetchStatusRaw, RateMapPayload, StatusMapPayload
from countervalues.services.cache import generate_cache
from countervalues.types import CounterValuesState, CountervaluesSettings

logger = logging.getLogger(__name__)


def export_countervalues(state: CounterValuesState) -> dict[str, Any]:
    """Serialize data and status. Every rate map is copied."""
    raw: dict[str, Any] = {key: dict(rates) for key, rates in state.data.items()}
    raw[STATUS_KEY] = {
        key: FetchStatusRaw.from_status(status).to_raw()
        for key, status in state.status.items()
    }
    return raw


def import_countervalues(
        raw: Mapping[str, Any],
        settings: CountervaluesSettings,
        now: datetime | None = None,
) -> CounterValuesState:
    """
    Rebuild a state from its persisted shape.

    Args:
        raw: Output of export_countervalues (possibly loaded from JSON)
        settings: Cache options used to rebuild every pair's cache
        now: Gap-fill horizon. Defaults to the current UTC time.

    Raises:
        StateImportError: An entry does not have the persisted shape
    """
    data = {}
    for key, value in raw.items():
        if key == STATUS_KEY:
            continue
        try:
            data[key] = RateMapPayload.model_validate(value).root
        except ValidationError as e:
            raise StateImportError(f"invalid rate map: {e}", key=key) from e

    try:
        status_raw = StatusMapPayload.model_validate(raw.get(STATUS_KEY) or {}).root
    except ValidationError as e:
        raise StateImportError(f"invalid status map: {e}", key=STATUS_KEY) from e

    status = {key: entry.to_status() for key, entry in status_raw.items()}
    cache = {key: generate_cache(rates, settings, now) for key, rates in data.items()}

    logger.info(f"Imported countervalues: {len(data)} pair(s), {len(status)} status entries")
    return CounterValuesState(data=data, status=status, cache=cache)
