"""Time-bounded exchange rate cache."""

import threading
import time
from dataclasses import dataclass
from decimal import Decimal
from typing import Callable, Mapping, Optional

DEFAULT_TTL = 24 * 60 * 60


@dataclass(frozen=True)
class CachedRate:
    """A rate together with the clock reading taken when it was fetched."""

    rate: Decimal
    fetched_at: float


class ExchangeRateCache:
    """Rates keyed by ``(from_code, to_code)``.

    Entries older than ``ttl`` seconds are treated as absent. Every lookup
    and insert happens under one lock, so a reader never observes a rate
    paired with another rate's timestamp.

    Args:
        ttl: Maximum age in seconds before a rate must be refetched
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, ttl: float = DEFAULT_TTL, clock: Optional[Callable[[], float]] = None):
        if ttl < 0:
            raise ValueError("Cache TTL cannot be negative")
        self.ttl = ttl
        self._clock = clock or time.monotonic
        self._rates: dict[tuple[str, str], CachedRate] = {}
        self._lock = threading.Lock()

    def get(self, from_code: str, to_code: str) -> Optional[Decimal]:
        """Return the cached rate, or None when missing or expired."""
        key = (from_code, to_code)
        with self._lock:
            cached = self._rates.get(key)
            if cached is None:
                return None
            if self._clock() - cached.fetched_at >= self.ttl:
                del self._rates[key]
                return None
            return cached.rate

    def put(self, from_code: str, to_code: str, rate: Decimal) -> None:
        """Store a rate, replacing any previous (possibly stale) value."""
        with self._lock:
            self._rates[(from_code, to_code)] = CachedRate(rate, self._clock())

    def put_all(self, from_code: str, rates: Mapping[str, Decimal]) -> None:
        """Store every ``from_code -> target`` rate of one fetch at once."""
        with self._lock:
            fetched_at = self._clock()
            for to_code, rate in rates.items():
                self._rates[(from_code, to_code)] = CachedRate(rate, fetched_at)

    def clear(self) -> None:
        with self._lock:
            self._rates.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._rates)
