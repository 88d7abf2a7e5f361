"""
Exchange rate cache with an injected clock.
"""

import time
from collections.abc import Callable
from decimal import Decimal
from typing import Optional

Rates = dict[str, Decimal]


class RateCache:
    """
    Holds one rate table for ``ttl`` seconds.

    Args:
        ttl: Lifetime of a stored table in seconds
        clock: Monotonic clock returning seconds (injectable for tests)
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic):
        self.ttl = ttl
        self.clock = clock
        self._rates: Optional[Rates] = None
        self._stored_at: Optional[float] = None

    def get(self) -> Optional[Rates]:
        """Cached rates, or None when empty or expired."""
        if self._rates is None or self._stored_at is None:
            return None
        if self.clock() - self._stored_at >= self.ttl:
            return None
        return dict(self._rates)

    def set(self, rates: Rates) -> None:
        self._rates = dict(rates)
        self._stored_at = self.clock()

    def clear(self) -> None:
        self._rates = None
        self._stored_at = None
