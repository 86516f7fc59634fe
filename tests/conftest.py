"""Shared pytest fixtures for beans tests."""

from datetime import datetime, timezone

import httpx
import pytest

from beans.domain.builder import LedgerEntryBuilder
from beans.domain.entities import EntryType
from beans.domain.ledger import LedgerManager
from beans.rates.converter import CurrencyConverter


def utc(year, month, day, hour=0, minute=0):
    """Shorthand for an aware UTC datetime."""
    return datetime(year, month, day, hour, minute, tzinfo=timezone.utc)


def make_entry(
    name="Groceries",
    amount="10.00",
    currency="USD",
    entry_type=EntryType.EXPENSE,
    date=None,
    tags=(),
    description=None,
):
    """Build a valid entry with overridable fields."""
    return (
        LedgerEntryBuilder()
        .name(name)
        .amount(amount)
        .currency(currency)
        .entry_type(entry_type)
        .date(date or utc(2024, 1, 15))
        .description(description)
        .tags(tags)
        .build()
    )


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class RateServer:
    """httpx transport handler serving canned rate payloads.

    ``rates`` maps a lowercase base code to its rate table. Handlers can
    be swapped per test through ``responder``.
    """

    def __init__(self, rates=None):
        self.rates = rates or {
            "eur": {"usd": 1.1, "gbp": 0.85, "eur": 1},
            "gbp": {"usd": 1.25, "eur": 1.17},
        }
        self.requests: list[httpx.Request] = []
        self.responder = None

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.responder is not None:
            return self.responder(request)
        code = request.url.path.rsplit("/", 1)[-1].removesuffix(".json")
        if code not in self.rates:
            return httpx.Response(404, text="Not Found")
        return httpx.Response(200, json={"date": "2024-03-01", code: self.rates[code]})


@pytest.fixture
def temp_ledger_path(tmp_path):
    """Path for a ledger file that does not exist yet."""
    return tmp_path / "test.bean"


@pytest.fixture
def ledger():
    """In-memory ledger, closed after the test."""
    manager = LedgerManager.in_memory()
    yield manager
    manager.close()


@pytest.fixture
def file_ledger(temp_ledger_path):
    """Ledger backed by a temporary .bean file."""
    manager = LedgerManager.open(temp_ledger_path)
    yield manager
    manager.close()


@pytest.fixture
def sample_entries(ledger):
    """Salary and rent in January, groceries in March, all in USD."""
    entries = [
        make_entry("Salary", "5000.00", entry_type=EntryType.INCOME, date=utc(2024, 1, 1), tags=["salary"]),
        make_entry("Rent", "1200.00", date=utc(2024, 1, 5), tags=["housing", "monthly"]),
        make_entry("Groceries", "84.50", date=utc(2024, 3, 10), tags=["food"]),
    ]
    for entry in entries:
        ledger.add_entry(entry)
    return entries


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def rate_server():
    return RateServer()


@pytest.fixture
def converter(rate_server, fake_clock):
    """Converter talking to the canned rate server through a mock transport."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(rate_server))
    return CurrencyConverter(
        base_url="https://rates.test/v1",
        fallback_url="",
        ttl=3600,
        timeout=5,
        client=client,
        clock=fake_clock,
    )


@pytest.fixture
def cli_runner():
    """Create a Click CLI test runner."""
    from click.testing import CliRunner

    return CliRunner()