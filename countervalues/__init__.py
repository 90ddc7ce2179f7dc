# countervalues/__init__.py
"""
Countervalues engine.

Keeps historical exchange rates between currency pairs in sync with a
remote rate service and converts amounts into a countervalue currency.

Usage:
    from countervalues import (
        INITIAL_STATE,
        CountervaluesSettings,
        CountervaluesSyncService,
        HttpCountervaluesProvider,
    )

    async with HttpCountervaluesProvider() as provider:
        service = CountervaluesSyncService(provider)
        settings = CountervaluesSettings(
            tracking_pairs=tuple(service.infer_tracking_pairs(accounts, usd))
        )
        state = await service.load_countervalues(INITIAL_STATE, settings)
"""

from countervalues.currencies import DefaultCurrencyModule
from countervalues.exceptions import (
    CountervaluesError,
    ProviderError,
    ProviderHTTPError,
    ProviderUnavailableError,
    StateImportError,
)
from countervalues.providers import CountervaluesProvider, HttpCountervaluesProvider
from countervalues.services import (
    ConversionQuery,
    CountervaluesSyncService,
    DataPoint,
    calculate,
    calculate_many,
    export_countervalues,
    import_countervalues,
    infer_tracking_pairs_for_accounts,
    resolve_tracking_pairs,
)
from countervalues.types import (
    INITIAL_STATE,
    Account,
    CounterValuesState,
    CountervaluesSettings,
    Currency,
    SyncReport,
    TrackingPair,
)

__version__ = "0.1.0"

__all__ = [
    "INITIAL_STATE",
    "Account",
    "ConversionQuery",
    "CounterValuesState",
    "CountervaluesError",
    "CountervaluesProvider",
    "CountervaluesSettings",
    "CountervaluesSyncService",
    "Currency",
    "DataPoint",
    "DefaultCurrencyModule",
    "HttpCountervaluesProvider",
    "ProviderError",
    "ProviderHTTPError",
    "ProviderUnavailableError",
    "StateImportError",
    "SyncReport",
    "TrackingPair",
    "calculate",
    "calculate_many",
    "export_countervalues",
    "import_countervalues",
    "infer_tracking_pairs_for_accounts",
    "resolve_tracking_pairs",
]
