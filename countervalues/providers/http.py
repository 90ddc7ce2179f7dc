# countervalues/providers/http.py
"""
HTTP countervalues provider.

Implements CountervaluesProvider against a countervalues REST API using
httpx's async client.

Endpoints:
    GET {base_url}/v2/{granularity}/{from}/{to}?start={bucket}
        -> {"2024-01-01": 42000.5, "2024-01-02": 42150.0, ...}
    GET {base_url}/v2/latest?pairs=BTC-USD,ETH-EUR
        -> [43000.1, 2250.4]

Error mapping:
    HTTP 429                  -> RateLimitError (status 429)
    other HTTP 4xx/5xx        -> ProviderHTTPError (status set)
    timeouts, network errors  -> ProviderUnavailableError (no status, retried)
    unparseable bodies        -> InvalidRateDataError (no status)

Example:
    async with HttpCountervaluesProvider() as provider:
        rates = await provider.fetch_historical("daily", pair)
"""

import logging
from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError

from countervalues.config import settings
from countervalues.exceptions import (
    InvalidRateDataError,
    ProviderHTTPError,
    ProviderUnavailableError,
    RateLimitError,
)
from countervalues.helpers import FORMAT_PER_GRANULARITY, pair_id
from countervalues.providers.base import CountervaluesProvider
from countervalues.schemas import LatestRatesPayload, RateMapPayload
from countervalues.types import RateMap, TrackingPair

logger = logging.getLogger(__name__)


class HttpCountervaluesProvider(CountervaluesProvider):
    """
    REST implementation of CountervaluesProvider.

    Configuration (defaults from countervalues.config.settings):
        base_url: API root
        timeout: Per-request timeout in seconds
        max_retry_attempts: Attempts per request on transport errors

    A client passed in is borrowed and left open; a client created here is
    owned and closed by aclose().
    """

    def __init__(
            self,
            base_url: str | None = None,
            timeout: float | None = None,
            client: httpx.AsyncClient | None = None,
            max_retry_attempts: int | None = None,
    ) -> None:
        self._base_url = (base_url or settings.api_base_url).rstrip("/")
        self._timeout = timeout or settings.api_timeout_seconds
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            headers={"Accept": "application/json"},
        )
        self.MAX_RETRY_ATTEMPTS = max_retry_attempts or settings.max_retry_attempts
        self.RETRY_MIN_WAIT = settings.retry_min_wait
        self.RETRY_MAX_WAIT = settings.retry_max_wait

        logger.info(
            f"HttpCountervaluesProvider initialized (base_url={self._base_url}, "
            f"timeout={self._timeout}s, attempts={self.MAX_RETRY_ATTEMPTS})"
        )

    @property
    def name(self) -> str:
        return "countervalues-api"

    # =========================================================================
    # PUBLIC METHODS
    # =========================================================================

    async def fetch_historical(
            self,
            granularity: str,
            pair: TrackingPair,
    ) -> RateMap:
        if granularity not in FORMAT_PER_GRANULARITY:
            raise ValueError(f"Unknown granularity: '{granularity}'")

        path = (
            f"/v2/{granularity}/"
            f"{pair.from_currency.ticker}/{pair.to_currency.ticker}"
        )
        params = {}
        if pair.start_date is not None:
            params["start"] = FORMAT_PER_GRANULARITY[granularity](pair.start_date)

        body = await self._execute_with_retry(self._get_json, path, params)

        try:
            rates = RateMapPayload.model_validate(body).root
        except ValidationError as e:
            raise InvalidRateDataError(self.name, f"{path}: {e}") from e

        logger.debug(
            f"Fetched {len(rates)} {granularity} buckets for "
            f"{pair_id(pair.from_currency, pair.to_currency)}"
        )
        return rates

    async def fetch_latest(
            self,
            pairs: Sequence[TrackingPair],
    ) -> list[float | None]:
        if not pairs:
            return []

        keys = [pair_id(p.from_currency, p.to_currency) for p in pairs]
        body = await self._execute_with_retry(
            self._get_json, "/v2/latest", {"pairs": ",".join(keys)}
        )

        try:
            rates = LatestRatesPayload.model_validate(body).root
        except ValidationError as e:
            raise InvalidRateDataError(self.name, f"/v2/latest: {e}") from e

        if len(rates) != len(pairs):
            raise InvalidRateDataError(
                self.name,
                f"expected {len(pairs)} latest rates, got {len(rates)}",
            )
        return rates

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def __aenter__(self) -> "HttpCountervaluesProvider":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    # =========================================================================
    # PRIVATE METHODS
    # =========================================================================

    async def _get_json(self, path: str, params: dict[str, str]) -> Any:
        """
        Perform one GET and decode its JSON body.

        Raises:
            RateLimitError, ProviderHTTPError, ProviderUnavailableError,
            InvalidRateDataError
        """
        try:
            response = await self._client.get(path, params=params)
        except httpx.TransportError as e:
            raise ProviderUnavailableError(
                self.name, f"{type(e).__name__} on {path}: {e}"
            ) from e

        if response.status_code == 429:
            raise RateLimitError(self.name, _parse_retry_after(response))
        if response.is_error:
            raise ProviderHTTPError(
                self.name, response.status_code, f"{path} {response.reason_phrase}"
            )

        try:
            return response.json()
        except ValueError as e:
            raise InvalidRateDataError(self.name, f"{path}: body is not JSON") from e


def _parse_retry_after(response: httpx.Response) -> int | None:
    value = response.headers.get("Retry-After")
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None
