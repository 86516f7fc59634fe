"""Currency conversion backed by a public exchange rate API."""

import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

import httpx

from beans import config
from beans.domain.currency import Currency
from beans.domain.errors import ConversionError, ValidationError, rate_unavailable
from beans.rates.cache import ExchangeRateCache

logger = logging.getLogger(__name__)


class CurrencyConverter:
    """Convert decimal amounts between currencies.

    Rates are fetched from ``{base_url}/currencies/{code}.json``, which
    returns every rate for one base currency in a single payload:

        {"date": "2024-03-01", "usd": {"eur": 0.92, "gbp": 0.79, ...}}

    All rates of a payload are cached, so converting USD to EUR and then
    USD to GBP costs one request. A failed fetch never falls back to a
    stale rate; it raises ConversionError.

    Args:
        base_url: Rate API root (defaults to ``BEANS_RATE_API_URL``)
        fallback_url: Optional mirror tried once when the primary fails
        ttl: Seconds a fetched rate stays valid
        timeout: Seconds before an unresponsive source is given up on
        client: httpx.AsyncClient to use instead of a private one
        clock: Monotonic time source for the cache
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        fallback_url: Optional[str] = None,
        ttl: Optional[float] = None,
        timeout: Optional[float] = None,
        client: Optional[httpx.AsyncClient] = None,
        clock: Optional[Callable[[], float]] = None,
    ):
        self.base_url = (base_url or config.RATE_API_URL).rstrip("/")
        fallback_url = fallback_url if fallback_url is not None else config.RATE_FALLBACK_URL
        self.fallback_url = fallback_url.rstrip("/") if fallback_url else None
        self.cache = ExchangeRateCache(
            ttl=config.RATE_TTL if ttl is None else ttl, clock=clock
        )
        # httpx limits each phase; total_timeout bounds the whole request
        self.total_timeout = float(config.RATE_TIMEOUT if timeout is None else timeout)
        self.timeout = httpx.Timeout(self.total_timeout)
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.timeout)
        self.fetch_count = 0
        self._fetch_locks: dict[str, asyncio.Lock] = {}
        self._fetch_locks_loop: Optional[asyncio.AbstractEventLoop] = None

    async def __aenter__(self) -> "CurrencyConverter":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Close the HTTP client if this converter created it."""
        if self._owns_client:
            await self._client.aclose()

    def clear_cache(self) -> None:
        self.cache.clear()

    async def convert(
        self, amount, from_currency: Currency | str, to_currency: Currency | str
    ) -> Decimal:
        """Convert ``amount`` from one currency to another.

        Converting a currency to itself returns the amount unchanged without
        consulting the rate source.

        Raises:
            ConversionError: If no rate could be obtained
        """
        if not isinstance(amount, Decimal):
            amount = Decimal(str(amount))
        from_code = self._resolve_code(from_currency, from_currency, to_currency)
        to_code = self._resolve_code(to_currency, from_currency, to_currency)
        if from_code == to_code:
            return amount
        rate = await self.get_exchange_rate(from_code, to_code)
        return amount * rate

    async def get_exchange_rate(
        self, from_currency: Currency | str, to_currency: Currency | str
    ) -> Decimal:
        """Return the rate that converts one unit of ``from`` into ``to``."""
        from_code = self._resolve_code(from_currency, from_currency, to_currency)
        to_code = self._resolve_code(to_currency, from_currency, to_currency)
        if from_code == to_code:
            return Decimal("1")

        rate = self.cache.get(from_code, to_code)
        if rate is not None:
            logger.debug("Rate cache hit for %s/%s", from_code, to_code)
            return rate

        # One fetch per base currency at a time; waiters re-check the cache
        async with self._fetch_lock(from_code):
            rate = self.cache.get(from_code, to_code)
            if rate is not None:
                logger.debug("Rate for %s/%s fetched by a concurrent lookup", from_code, to_code)
                return rate
            rates = await self._fetch_rates(from_code, to_code)
            self.cache.put_all(from_code, rates)

        if to_code not in rates:
            raise ConversionError(
                rate_unavailable(from_code, to_code),
                from_code=from_code,
                to_code=to_code,
                transient=False,
            )
        return rates[to_code]

    @staticmethod
    def _resolve_code(value, from_currency, to_currency) -> str:
        try:
            return Currency.from_code(value).code
        except ValidationError as e:
            raise ConversionError(
                str(e),
                from_code=str(from_currency),
                to_code=str(to_currency),
                transient=False,
            ) from e

    def _fetch_lock(self, from_code: str) -> asyncio.Lock:
        """Return the lock serializing fetches of one base currency.

        Locks belong to the running event loop, so a converter reused under
        a new loop starts with a fresh set.
        """
        loop = asyncio.get_running_loop()
        if self._fetch_locks_loop is not loop:
            self._fetch_locks = {}
            self._fetch_locks_loop = loop
        return self._fetch_locks.setdefault(from_code, asyncio.Lock())

    async def _fetch_rates(
        self, from_code: str, to_code: Optional[str] = None
    ) -> dict[str, Decimal]:
        """Fetch every rate for a base currency, trying the fallback once."""
        try:
            return await self._fetch_from(self.base_url, from_code, to_code)
        except ConversionError as e:
            if self.fallback_url is None:
                raise
            logger.warning(
                "Rate source %s failed for %s (%s), trying fallback",
                self.base_url,
                from_code,
                e,
            )
        return await self._fetch_from(self.fallback_url, from_code, to_code)

    async def _fetch_from(
        self, base_url: str, from_code: str, to_code: Optional[str] = None
    ) -> dict[str, Decimal]:
        url = f"{base_url}/currencies/{from_code.lower()}.json"
        self.fetch_count += 1
        logger.info("Fetching exchange rates for %s from %s", from_code, url)

        try:
            response = await asyncio.wait_for(
                self._client.get(url, timeout=self.timeout), self.total_timeout
            )
        except (httpx.TimeoutException, asyncio.TimeoutError) as e:
            raise ConversionError(
                f"Timed out fetching exchange rates for {from_code}",
                from_code=from_code,
                to_code=to_code,
                transient=True,
            ) from e
        except httpx.HTTPError as e:
            raise ConversionError(
                f"Network error fetching exchange rates for {from_code}: {e}",
                from_code=from_code,
                to_code=to_code,
                transient=True,
            ) from e

        if response.status_code >= 500:
            raise ConversionError(
                f"Rate source returned HTTP {response.status_code} for {from_code}",
                from_code=from_code,
                to_code=to_code,
                transient=True,
            )
        if response.status_code >= 400:
            raise ConversionError(
                f"Currency {from_code} is not supported by the rate source "
                f"(HTTP {response.status_code})",
                from_code=from_code,
                to_code=to_code,
                transient=False,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ConversionError(
                f"Rate source returned a malformed payload for {from_code}",
                from_code=from_code,
                to_code=to_code,
                transient=False,
            ) from e

        raw_rates = payload.get(from_code.lower()) if isinstance(payload, dict) else None
        if not isinstance(raw_rates, dict):
            raise ConversionError(
                f"Rate source returned a malformed payload for {from_code}",
                from_code=from_code,
                to_code=to_code,
                transient=False,
            )
        return self._parse_rates(raw_rates)

    @staticmethod
    def _parse_rates(raw_rates: dict) -> dict[str, Decimal]:
        """Parse rate values into Decimals, skipping non-numeric ones."""
        rates = {}
        for code, value in raw_rates.items():
            if isinstance(value, bool) or not isinstance(value, (int, float, str)):
                continue
            try:
                rate = Decimal(str(value))
            except InvalidOperation:
                continue
            if rate.is_finite() and rate > 0:
                rates[code.upper()] = rate
        return rates
