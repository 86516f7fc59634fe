"""Exchange rates and currency conversion."""

from beans.rates.cache import CachedRate, ExchangeRateCache
from beans.rates.converter import CurrencyConverter

__all__ = ["CachedRate", "CurrencyConverter", "ExchangeRateCache"]
