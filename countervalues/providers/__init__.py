# countervalues/providers/__init__.py
"""
Countervalues providers package.

Architecture:
    CountervaluesProvider (ABC)
    └── HttpCountervaluesProvider (httpx, REST API)

Usage:
    from countervalues.providers import HttpCountervaluesProvider
"""

from countervalues.providers.base import CountervaluesProvider
from countervalues.providers.http import HttpCountervaluesProvider

__all__ = [
    "CountervaluesProvider",
    "HttpCountervaluesProvider",
]
