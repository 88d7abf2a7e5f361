"""
Currency conversion over cached exchange rates.

Rates come from the cache while fresh, otherwise from the client. When the
client fails, the built-in fallback table is used for that call only; it is
never cached, so the next call tries the provider again.
"""

import logging
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ..schemas.transaction import CURRENCY_PRECISION
from .cache import RateCache, Rates
from .client import ExchangeRateClient, RatesError

logger = logging.getLogger(__name__)

# Units per 1 USD
FALLBACK_RATES: Rates = {
    "USD": Decimal("1"),
    "EUR": Decimal("0.85"),
    "GBP": Decimal("0.73"),
    "JPY": Decimal("110.42"),
    "CAD": Decimal("1.25"),
    "AUD": Decimal("1.36"),
    "CNY": Decimal("6.47"),
    "INR": Decimal("74.38"),
}

# Code -> (name, symbol)
CURRENCY_META = {
    "USD": ("US Dollar", "$"),
    "EUR": ("Euro", "€"),
    "GBP": ("British Pound", "£"),
    "JPY": ("Japanese Yen", "¥"),
    "CAD": ("Canadian Dollar", "C$"),
    "AUD": ("Australian Dollar", "A$"),
    "CNY": ("Chinese Yuan", "¥"),
    "INR": ("Indian Rupee", "₹"),
}


@dataclass
class CurrencyInfo:
    """A supported currency with its current rate."""

    code: str
    name: str
    symbol: str
    rate: Decimal

    def to_dict(self) -> dict:
        return {"code": self.code, "name": self.name, "symbol": self.symbol, "rate": str(self.rate)}


class CurrencyConverter:
    """
    Converts amounts between currencies via the base currency.

    Args:
        client: Rate provider client
        cache: Rate cache (TTL and clock live there)
        base_currency: Currency the provider's rates are relative to
    """

    def __init__(
        self,
        client: ExchangeRateClient,
        cache: Optional[RateCache] = None,
        base_currency: str = "USD",
    ):
        self.client = client
        self.cache = cache or RateCache(ttl=24 * 60 * 60)
        self.base_currency = base_currency.upper()

    def rates(self) -> Rates:
        """Current rates: cached, freshly fetched, or the fallback table."""
        cached = self.cache.get()
        if cached is not None:
            return cached

        try:
            rates = self.client.fetch_rates(self.base_currency)
        except RatesError as e:
            logger.warning("Using fallback exchange rates: %s", e.message)
            return dict(FALLBACK_RATES)

        self.cache.set(rates)
        return rates

    def convert(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        """
        Convert ``amount`` between two currency codes.

        Returns:
            Converted amount rounded to cents (unchanged if the codes match)

        Raises:
            RatesError: Either code has no known rate
        """
        from_code = from_currency.upper()
        to_code = to_currency.upper()
        amount = Decimal(amount)

        if from_code == to_code:
            return amount

        rates = self.rates()
        missing = [code for code in (from_code, to_code) if code not in rates]
        if missing:
            raise RatesError(f"Failed to convert currency: Unsupported currency {', '.join(missing)}")

        in_base = amount / rates[from_code]
        converted = (in_base * rates[to_code]).quantize(CURRENCY_PRECISION, rounding=ROUND_HALF_UP)
        logger.debug("Converted %s %s -> %s %s", amount, from_code, converted, to_code)
        return converted

    def supported_currencies(self) -> list[CurrencyInfo]:
        """Currencies with both a current rate and display metadata."""
        rates = self.rates()
        currencies = []
        for code, rate in rates.items():
            meta = CURRENCY_META.get(code)
            if meta is None:
                continue
            name, symbol = meta
            currencies.append(CurrencyInfo(code=code, name=name, symbol=symbol, rate=rate))
        return currencies
