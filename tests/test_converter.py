"""Tests for CurrencyConverter and its rate cache."""

import asyncio
from decimal import Decimal

import httpx
import pytest

from beans.domain.currency import Currency
from beans.domain.errors import ConversionError
from beans.rates.cache import ExchangeRateCache
from beans.rates.converter import CurrencyConverter

from conftest import FakeClock, RateServer


def run(coro):
    return asyncio.run(coro)


class TestExchangeRateCache:
    def test_get_missing(self):
        assert ExchangeRateCache(ttl=10).get("USD", "EUR") is None

    def test_entry_expires_after_ttl(self):
        clock = FakeClock()
        cache = ExchangeRateCache(ttl=10, clock=clock)
        cache.put("USD", "EUR", Decimal("0.9"))

        clock.advance(9.9)
        assert cache.get("USD", "EUR") == Decimal("0.9")
        clock.advance(0.1)
        assert cache.get("USD", "EUR") is None
        assert len(cache) == 0

    def test_put_all_and_clear(self):
        cache = ExchangeRateCache(ttl=10, clock=FakeClock())
        cache.put_all("USD", {"EUR": Decimal("0.9"), "GBP": Decimal("0.8")})
        assert cache.get("USD", "GBP") == Decimal("0.8")
        # Forward direction only
        assert cache.get("GBP", "USD") is None
        cache.clear()
        assert len(cache) == 0

    def test_negative_ttl_rejected(self):
        with pytest.raises(ValueError):
            ExchangeRateCache(ttl=-1)


def test_same_currency_is_identity_without_fetch(converter, rate_server):
    amount = Decimal("123.456789")
    assert run(converter.convert(amount, "USD", Currency.from_code("usd"))) == amount
    assert converter.fetch_count == 0
    assert rate_server.requests == []


def test_convert_fetches_and_multiplies(converter, rate_server):
    result = run(converter.convert(Decimal("100.00"), "EUR", "USD"))

    assert result == Decimal("110.000")
    assert converter.fetch_count == 1
    assert str(rate_server.requests[0].url) == "https://rates.test/v1/currencies/eur.json"


def test_rates_are_decimal_from_json_text(converter):
    rate = run(converter.get_exchange_rate("EUR", "GBP"))
    assert rate == Decimal("0.85")
    assert isinstance(rate, Decimal)


def test_one_fetch_caches_whole_payload(converter):
    async def scenario():
        await converter.convert(Decimal("1"), "EUR", "USD")
        await converter.convert(Decimal("1"), "EUR", "GBP")
        await converter.convert(Decimal("2"), "EUR", "USD")

    run(scenario())
    assert converter.fetch_count == 1


def test_cache_staleness_triggers_refetch(converter, fake_clock, rate_server):
    run(converter.convert(Decimal("1"), "EUR", "USD"))
    fake_clock.advance(3599)
    run(converter.convert(Decimal("1"), "EUR", "USD"))
    assert converter.fetch_count == 1

    rate_server.rates["eur"]["usd"] = 1.2
    fake_clock.advance(1)
    assert run(converter.convert(Decimal("10"), "EUR", "USD")) == Decimal("12.0")
    assert converter.fetch_count == 2


def test_clear_cache_forces_refetch(converter):
    run(converter.convert(Decimal("1"), "EUR", "USD"))
    converter.clear_cache()
    run(converter.convert(Decimal("1"), "EUR", "USD"))
    assert converter.fetch_count == 2


def test_missing_pair_is_permanent(converter):
    with pytest.raises(ConversionError) as excinfo:
        run(converter.convert(Decimal("1"), "EUR", "JPY"))
    assert excinfo.value.transient is False
    assert excinfo.value.from_code == "EUR"
    assert excinfo.value.to_code == "JPY"


def test_unsupported_base_currency_is_permanent(converter):
    with pytest.raises(ConversionError) as excinfo:
        run(converter.convert(Decimal("1"), "CHF", "USD"))
    assert excinfo.value.transient is False
    assert excinfo.value.to_code == "USD"
    assert "HTTP 404" in str(excinfo.value)


def test_unknown_currency_code_is_permanent(converter):
    with pytest.raises(ConversionError) as excinfo:
        run(converter.convert(Decimal("1"), "ZZZ", "USD"))
    assert excinfo.value.transient is False
    assert converter.fetch_count == 0


def test_server_error_is_transient(converter, rate_server):
    rate_server.responder = lambda request: httpx.Response(503)
    with pytest.raises(ConversionError) as excinfo:
        run(converter.convert(Decimal("1"), "EUR", "USD"))
    assert excinfo.value.transient is True


def test_network_error_is_transient(converter, rate_server):
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    rate_server.responder = refuse
    with pytest.raises(ConversionError) as excinfo:
        run(converter.convert(Decimal("1"), "EUR", "USD"))
    assert excinfo.value.transient is True
    assert "Network error" in str(excinfo.value)


def test_timeout_is_transient(converter, rate_server):
    def hang(request):
        raise httpx.ReadTimeout("timed out", request=request)

    rate_server.responder = hang
    with pytest.raises(ConversionError) as excinfo:
        run(converter.convert(Decimal("1"), "EUR", "USD"))
    assert excinfo.value.transient is True
    assert "Timed out" in str(excinfo.value)


@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(200, text="<html>not json</html>"),
        httpx.Response(200, json=["unexpected"]),
        httpx.Response(200, json={"date": "2024-03-01", "eur": "oops"}),
    ],
)
def test_malformed_payload_is_permanent(converter, rate_server, response):
    rate_server.responder = lambda request: response
    with pytest.raises(ConversionError) as excinfo:
        run(converter.convert(Decimal("1"), "EUR", "USD"))
    assert excinfo.value.transient is False
    assert "malformed" in str(excinfo.value)


def test_failed_fetch_never_uses_stale_rate(converter, fake_clock, rate_server):
    run(converter.convert(Decimal("1"), "EUR", "USD"))
    fake_clock.advance(3600)
    rate_server.responder = lambda request: httpx.Response(500)

    with pytest.raises(ConversionError):
        run(converter.convert(Decimal("1"), "EUR", "USD"))


def test_fallback_used_when_primary_fails(fake_clock):
    def handler(request):
        if request.url.host == "primary.test":
            return httpx.Response(502)
        return httpx.Response(200, json={"date": "2024-03-01", "gbp": {"usd": 1.25}})

    converter = CurrencyConverter(
        base_url="https://primary.test/v1",
        fallback_url="https://mirror.test/v1/",
        client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        clock=fake_clock,
    )

    assert run(converter.convert(Decimal("4"), "GBP", "USD")) == Decimal("5.00")
    assert converter.fetch_count == 2


def test_concurrent_conversions(converter):
    async def scenario():
        return await asyncio.gather(
            converter.convert(Decimal("1"), "EUR", "USD"),
            converter.convert(Decimal("1"), "GBP", "USD"),
        )

    assert run(scenario()) == [Decimal("1.1"), Decimal("1.25")]


def test_async_context_manager_closes_own_client():
    async def scenario():
        async with CurrencyConverter(base_url="https://rates.test/v1") as converter:
            client = converter._client
        return client

    client = run(scenario())
    assert client.is_closed


def test_injected_client_left_open(converter):
    run(converter.aclose())
    assert not converter._client.is_closed


def test_concurrent_same_pair_shares_one_fetch(fake_clock):
    server = RateServer()

    async def slow(request):
        await asyncio.sleep(0.01)
        return server(request)

    converter = CurrencyConverter(
        base_url="https://rates.test/v1",
        fallback_url="",
        client=httpx.AsyncClient(transport=httpx.MockTransport(slow)),
        clock=fake_clock,
    )

    async def scenario():
        return await asyncio.gather(
            *(converter.convert(Decimal("1"), "EUR", "USD") for _ in range(50))
        )

    assert run(scenario()) == [Decimal("1.1")] * 50
    assert converter.fetch_count == 1
    assert len(server.requests) == 1


def test_slow_response_hits_total_timeout(fake_clock):
    async def stall(request):
        await asyncio.sleep(5)
        return httpx.Response(200, json={"eur": {"usd": 1.1}})

    converter = CurrencyConverter(
        base_url="https://rates.test/v1",
        fallback_url="",
        timeout=0.05,
        client=httpx.AsyncClient(transport=httpx.MockTransport(stall)),
        clock=fake_clock,
    )

    with pytest.raises(ConversionError) as excinfo:
        run(converter.convert(Decimal("1"), "EUR", "USD"))
    assert excinfo.value.transient is True
    assert "Timed out" in str(excinfo.value)


def test_fetch_failure_names_both_currencies(converter, rate_server):
    rate_server.responder = lambda request: httpx.Response(503)
    with pytest.raises(ConversionError) as excinfo:
        run(converter.convert(Decimal("1"), "EUR", "USD"))
    assert excinfo.value.from_code == "EUR"
    assert excinfo.value.to_code == "USD"
