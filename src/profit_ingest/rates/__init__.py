"""
Exchange rates.

Provides:
- ExchangeRateClient: HTTP client with retry/backoff
- RateCache: TTL cache with an injectable clock
- CurrencyConverter: conversion with fallback rates
"""

from .cache import RateCache
from .client import ExchangeRateClient, RatesError
from .converter import FALLBACK_RATES, CurrencyConverter, CurrencyInfo

__all__ = [
    "ExchangeRateClient",
    "RatesError",
    "RateCache",
    "CurrencyConverter",
    "CurrencyInfo",
    "FALLBACK_RATES",
]
