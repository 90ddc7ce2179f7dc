# countervalues/services/resolver.py
"""
Tracking pair resolution.

Normalizes the raw tracking requests of a host application (usually one
per account) into the deduplicated list a sync pass works on:
- aliases each pair through the currency module
- drops pairs where either side has countervalues disabled
- drops identity pairs (from == to)
- merges duplicates, keeping the oldest concrete start date
"""

import logging
from collections.abc import Iterable

from countervalues.helpers import ensure_utc, pair_id
from countervalues.protocols import CurrencyModule
from countervalues.types import Account, Currency, TrackingPair

logger = logging.getLogger(__name__)


def resolve_tracking_pairs(
        pairs: Iterable[TrackingPair],
        currencies: CurrencyModule,
) -> list[TrackingPair]:
    """
    Deduplicate and alias tracking requests.

    A missing start date never erases a concrete one: the merged pair starts
    at the oldest concrete date among its duplicates, or has no start date
    if none of them carried one.

    Args:
        pairs: Raw tracking requests
        currencies: Aliasing and enablement rules

    Returns:
        Resolved pairs, in first-seen order of their keys
    """
    resolved: dict[str, TrackingPair] = {}
    dropped = 0

    for pair in pairs:
        from_currency, to_currency = currencies.resolve_tracking_pair(
            pair.from_currency, pair.to_currency
        )
        if not currencies.is_countervalue_enabled(from_currency):
            dropped += 1
            continue
        if not currencies.is_countervalue_enabled(to_currency):
            dropped += 1
            continue
        if from_currency == to_currency:
            dropped += 1
            continue

        start_date = ensure_utc(pair.start_date) if pair.start_date else None
        key = pair_id(from_currency, to_currency)
        existing = resolved.get(key)
        if existing is not None and existing.start_date is not None:
            if start_date is None or existing.start_date < start_date:
                start_date = existing.start_date

        resolved[key] = TrackingPair(
            from_currency=from_currency,
            to_currency=to_currency,
            start_date=start_date,
        )

    logger.debug(
        f"Resolved {len(resolved)} tracking pairs ({dropped} dropped)"
    )
    return list(resolved.values())


def flatten_accounts(accounts: Iterable[Account]) -> list[Account]:
    """Accounts followed by their sub-accounts, depth first."""
    flat: list[Account] = []
    for account in accounts:
        flat.append(account)
        flat.extend(flatten_accounts(account.sub_accounts))
    return flat


def infer_tracking_pairs_for_accounts(
        accounts: Iterable[Account],
        countervalue: Currency,
        currencies: CurrencyModule,
) -> list[TrackingPair]:
    """
    Build the tracking pairs needed to value a set of accounts.

    Each account (sub-accounts included) asks for its currency against
    `countervalue`, starting at the account's creation date.
    """
    return resolve_tracking_pairs(
        (
            TrackingPair(
                from_currency=account.currency,
                to_currency=countervalue,
                start_date=account.creation_date,
            )
            for account in flatten_accounts(accounts)
        ),
        currencies,
    )
