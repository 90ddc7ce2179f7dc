# countervalues/currencies.py
"""
Default currency rules.

Implements the CurrencyModule protocol with two tables:
- aliases: tickers that share a price with another ticker (e.g., a wrapped
  token priced as its underlying asset)
- disabled: tickers that have no countervalue at all (testnets, etc.)

Host applications with richer rules pass their own CurrencyModule instead.

Usage:
    from countervalues.currencies import DefaultCurrencyModule

    currencies = DefaultCurrencyModule(
        aliases={"WETH": ETH},
        disabled={"TBTC"},
    )
"""

import logging
from collections.abc import Iterable, Mapping

from countervalues.types import Currency

logger = logging.getLogger(__name__)


class DefaultCurrencyModule:
    """
    Table-driven aliasing and enablement.

    Attributes:
        _aliases: ticker -> Currency used in its place
        _disabled: tickers without countervalues
    """

    def __init__(
            self,
            aliases: Mapping[str, Currency] | None = None,
            disabled: Iterable[str] | None = None,
    ) -> None:
        self._aliases = dict(aliases or {})
        self._disabled = frozenset(disabled or ())
        logger.debug(
            f"DefaultCurrencyModule initialized "
            f"(aliases={len(self._aliases)}, disabled={len(self._disabled)})"
        )

    def is_countervalue_enabled(self, currency: Currency) -> bool:
        return currency.ticker not in self._disabled

    def alias_currency(self, currency: Currency) -> Currency:
        """Return the currency priced in place of `currency`."""
        return self._aliases.get(currency.ticker, currency)

    def alias_pair(
            self,
            from_currency: Currency,
            to_currency: Currency,
    ) -> tuple[Currency, Currency]:
        return self.alias_currency(from_currency), self.alias_currency(to_currency)

    def resolve_tracking_pair(
            self,
            from_currency: Currency,
            to_currency: Currency,
    ) -> tuple[Currency, Currency]:
        # Tracking uses the same aliases as lookups so both hit the same key
        return self.alias_pair(from_currency, to_currency)
