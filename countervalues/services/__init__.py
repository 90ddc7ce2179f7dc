# countervalues/services/__init__.py
"""
Service layer of the countervalues engine.

Pure functions (resolver, scheduler, cache, lookup, calculator,
persistence) hold the rules; CountervaluesSyncService is the only
component that performs I/O, through an injected provider.

Usage:
    from countervalues.services import CountervaluesSyncService
    from countervalues.services import ConversionQuery, calculate
    from countervalues.services import export_countervalues, import_countervalues

Architecture:
    services/
    ├── __init__.py        # This file - main exports
    ├── resolver.py        # Tracking pair dedup, aliasing, inference
    ├── scheduler.py       # Fetch planning and backoff
    ├── cache.py           # Gap-filled cache builder
    ├── lookup.py          # Point-in-time rate lookup
    ├── calculator.py      # Countervalue conversions
    ├── persistence.py     # Export / import of persisted state
    └── sync_service.py    # Sync pass orchestration
"""

# Tracking pairs
from countervalues.services.resolver import (
    flatten_accounts,
    infer_tracking_pairs_for_accounts,
    resolve_tracking_pairs,
)

# Planning
from countervalues.services.scheduler import plan_historical_fetches, retry_delay

# Cache and lookups
from countervalues.services.cache import generate_cache, merge_rate_maps, rate_map_stats
from countervalues.services.lookup import lense_rate, lense_rate_map

# Calculations
from countervalues.services.calculator import (
    ConversionQuery,
    DataPoint,
    calculate,
    calculate_many,
)

# Persistence
from countervalues.services.persistence import export_countervalues, import_countervalues

# Orchestration
from countervalues.services.sync_service import CountervaluesSyncService

__all__ = [
    # Tracking pairs
    "resolve_tracking_pairs",
    "infer_tracking_pairs_for_accounts",
    "flatten_accounts",
    # Planning
    "plan_historical_fetches",
    "retry_delay",
    # Cache and lookups
    "generate_cache",
    "merge_rate_maps",
    "rate_map_stats",
    "lense_rate",
    "lense_rate_map",
    # Calculations
    "ConversionQuery",
    "DataPoint",
    "calculate",
    "calculate_many",
    # Persistence
    "export_countervalues",
    "import_countervalues",
    # Orchestration
    "CountervaluesSyncService",
]
