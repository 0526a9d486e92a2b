"""
EUR→USD rate resolution.

Lives outside the pure pipeline: it is the one place that performs I/O.
A live rate is fetched from the currency API at most once per cache TTL
(24 h by default); on any failure the configured fallback constant is
returned so report building never fails for lack of a rate.

Usage:
    cache = RateCache()
    async with EurUsdRateProvider(cache=cache) as provider:
        rate = await provider.get_rate()
"""
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from adprofit.coercion import is_number
from adprofit.config import FxConfig, config
from adprofit.exceptions import Degradation, RateProviderError
from adprofit.observability import get_logger

logger = get_logger(__name__)


@dataclass
class RateCache:
    """Last good rate and when it was fetched."""
    ttl_seconds: float = config.fx.cache_ttl_seconds
    rate: Optional[float] = None
    fetched_at: float = 0.0
    clock: Callable[[], float] = time.time

    def get(self) -> Optional[float]:
        if self.rate is None:
            return None
        if self.clock() - self.fetched_at >= self.ttl_seconds:
            return None
        return self.rate

    def set(self, rate: float) -> None:
        self.rate = rate
        self.fetched_at = self.clock()

    def clear(self) -> None:
        self.rate = None
        self.fetched_at = 0.0


class EurUsdRateProvider:
    """
    Async client for the EUR→USD rate.

    The httpx client can be injected (tests pass one built on
    httpx.MockTransport).
    """

    def __init__(
        self,
        settings: Optional[FxConfig] = None,
        cache: Optional[RateCache] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.settings = settings or config.fx
        self.cache = cache or RateCache(ttl_seconds=self.settings.cache_ttl_seconds)
        self._client = client
        self._owns_client = client is None

    async def __aenter__(self) -> "EurUsdRateProvider":
        await self.connect()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    async def connect(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.settings.request_timeout)

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def fetch_rate(self) -> float:
        """
        Fetch a live rate, bypassing the cache.

        Raises:
            RateProviderError: On missing key, HTTP failure or bad payload
        """
        if not self.settings.api_key:
            raise RateProviderError("FOREX_API key not set")

        await self.connect()
        params = {
            "apikey": self.settings.api_key,
            "base_currency": "EUR",
            "currencies": "USD",
        }
        try:
            response = await self._client.get(self.settings.base_url, params=params)
        except httpx.HTTPError as e:
            raise RateProviderError("Currency API request failed", str(e))

        if response.status_code >= 400:
            raise RateProviderError(
                "Currency API returned an error",
                response.text[:200],
                status_code=response.status_code,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise RateProviderError("Currency API returned invalid JSON", str(e))

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, dict):
            raise RateProviderError("Currency API returned no rate table", repr(data))
        rate = data.get("USD")
        if not is_number(rate) or rate <= 0:
            raise RateProviderError("Currency API returned no usable USD rate", repr(rate))
        return float(rate)

    async def get_rate(self) -> float:
        """Cached rate, else a live rate, else the fallback constant."""
        cached = self.cache.get()
        if cached is not None:
            return cached

        try:
            rate = await self.fetch_rate()
        except RateProviderError as e:
            logger.warning(
                f"Using fallback EUR->USD rate: {e}",
                extra={"degradation": Degradation.MISSING_RATE.value,
                       "fallback": self.settings.fallback_rate},
            )
            return self.settings.fallback_rate

        self.cache.set(rate)
        logger.info("EUR->USD rate refreshed", extra={"rate": rate})
        return rate
