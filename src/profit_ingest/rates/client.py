"""
Exchange rate API client implementation.
"""

import logging
from decimal import Decimal, InvalidOperation
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from ..errors import ProfitIngestError

logger = logging.getLogger(__name__)


class RatesError(ProfitIngestError):
    """Rates could not be fetched, parsed or applied."""

    pass


class ExchangeRateClient:
    """
    Client for an exchangerate-api.com style endpoint.

    ``GET {api_url}/{BASE}`` returns ``{"base": "USD", "rates": {"EUR": 0.92, ...}}``.

    Features:
    - Automatic retry with backoff on transient HTTP failures
    - Rates returned as Decimal
    """

    DEFAULT_TIMEOUT = 10

    def __init__(
        self,
        api_url: str,
        timeout: int = DEFAULT_TIMEOUT,
        max_retries: int = 2,
        backoff_factor: float = 0.5,
    ):
        """
        Initialize rates client.

        Args:
            api_url: Endpoint without the base currency segment
            timeout: Request timeout in seconds
            max_retries: Maximum retry attempts for transient failures
            backoff_factor: Backoff factor for retries
        """
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout

        self.session = requests.Session()
        self.session.headers.update({"Accept": "application/json"})

        retry_strategy = Retry(
            total=max_retries,
            backoff_factor=backoff_factor,
            status_forcelist=[429, 500, 502, 503, 504],
            allowed_methods=["GET"],
        )
        adapter = HTTPAdapter(max_retries=retry_strategy)
        self.session.mount("http://", adapter)
        self.session.mount("https://", adapter)

    def fetch_rates(self, base: str = "USD") -> dict[str, Decimal]:
        """
        Fetch the latest rates relative to ``base``.

        Returns:
            Currency code -> units per one ``base``; always includes ``base`` itself

        Raises:
            RatesError: Connection failure, HTTP error or malformed payload
        """
        base = base.upper()
        url = f"{self.api_url}/{base}"

        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.exceptions.ConnectionError as e:
            raise RatesError(f"Failed to connect to rates API at {self.api_url}: {e}") from e
        except requests.exceptions.Timeout as e:
            raise RatesError(f"Request to rates API timed out: {e}") from e
        except requests.exceptions.RequestException as e:
            raise RatesError(f"Request failed: {e}") from e

        if not response.ok:
            raise RatesError(f"Rates API error {response.status_code}: {response.reason}")

        try:
            payload = response.json()
        except ValueError as e:
            raise RatesError(f"Rates API returned invalid JSON: {e}") from e

        raw_rates: Optional[dict] = payload.get("rates") if isinstance(payload, dict) else None
        if not isinstance(raw_rates, dict) or not raw_rates:
            raise RatesError("Rates API response has no rates")

        rates: dict[str, Decimal] = {}
        for code, value in raw_rates.items():
            try:
                rate = Decimal(str(value))
            except (InvalidOperation, ValueError):
                logger.warning("Skipping non-numeric rate %s=%r", code, value)
                continue
            if rate.is_finite() and rate > 0:
                rates[str(code).upper()] = rate

        rates.setdefault(base, Decimal("1"))
        logger.info("Fetched %d exchange rates (base %s)", len(rates), base)
        return rates
