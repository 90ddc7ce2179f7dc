# countervalues/protocols.py
"""
Protocol interfaces for collaborator injection.

Using typing.Protocol enables structural subtyping:
- Host applications plug in their own currency rules without inheritance
- Test mocks work without explicit inheritance
- Clear documentation of required interfaces
"""

from __future__ import annotations

from typing import Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from countervalues.types import Currency


class CurrencyModule(Protocol):
    """Currency rules required by the resolver, lookup and calculator."""

    def is_countervalue_enabled(self, currency: Currency) -> bool:
        ...

    def alias_pair(
        self,
        from_currency: Currency,
        to_currency: Currency,
    ) -> tuple[Currency, Currency]:
        ...

    def resolve_tracking_pair(
        self,
        from_currency: Currency,
        to_currency: Currency,
    ) -> tuple[Currency, Currency]:
        ...
