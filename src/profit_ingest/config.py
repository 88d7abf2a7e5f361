"""
Configuration management (SSOT).

This module defines ALL configuration for profit-ingest.
All config keys are defined here; no other module should invent config keys.

Key invariants:
- Every setting has a working default; a missing config file is not an error
- Environment variables override file values
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import yaml

from .categorizer import DEFAULT_TAXONOMY

DEFAULT_RATES_URL = "https://api.exchangerate-api.com/v4/latest"

TRUE_VALUES = ("1", "true", "yes", "on")
FALSE_VALUES = ("0", "false", "no", "off")


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""

    pass


@dataclass
class ExtractionConfig:
    """Extraction heuristics and OCR settings."""

    # Read ambiguous dates like 01/02/2024 as 1 February
    dayfirst: bool = False
    # Tesseract language pack
    ocr_language: str = "eng"
    # Tesseract page segmentation mode (3 = fully automatic)
    ocr_page_segmentation: int = 3
    # Path to the tesseract binary (None = use PATH)
    tesseract_cmd: str | None = None
    # Lines scanned below a date line for its amount
    lookahead_lines: int = 3
    # Minimum line length for dated candidates
    min_line_length: int = 10
    # Minimum line length for amount-only candidates
    min_amount_line_length: int = 5


@dataclass
class CategorizationConfig:
    """Categorization taxonomy (type -> allowed category labels)."""

    taxonomy: dict[str, list[str]] = field(
        default_factory=lambda: {key: list(labels) for key, labels in DEFAULT_TAXONOMY.items()}
    )


@dataclass
class RatesConfig:
    """Exchange rate provider settings."""

    api_url: str = DEFAULT_RATES_URL
    base_currency: str = "USD"
    # Fetched rates are reused for this long
    ttl_hours: float = 24
    timeout_seconds: int = 10
    max_retries: int = 2


@dataclass
class Config:
    """Application configuration (SSOT)."""

    extraction: ExtractionConfig = field(default_factory=ExtractionConfig)
    categorization: CategorizationConfig = field(default_factory=CategorizationConfig)
    rates: RatesConfig = field(default_factory=RatesConfig)

    def validate(self) -> list[str]:
        """Validate configuration consistency.

        Returns:
            List of validation errors (empty if valid)
        """
        errors: list[str] = []

        if not self.extraction.ocr_language:
            errors.append("extraction.ocr_language is required")
        if not 0 <= self.extraction.ocr_page_segmentation <= 13:
            errors.append("extraction.ocr_page_segmentation must be between 0 and 13")
        if self.extraction.lookahead_lines < 0:
            errors.append("extraction.lookahead_lines must be >= 0")
        if self.extraction.min_line_length < 1 or self.extraction.min_amount_line_length < 1:
            errors.append("extraction line length thresholds must be >= 1")

        unknown_types = set(self.categorization.taxonomy) - {"revenue", "expense"}
        if unknown_types:
            errors.append(
                f"categorization.taxonomy has unknown types: {', '.join(sorted(unknown_types))}"
            )

        if not self.rates.api_url:
            errors.append("rates.api_url is required")
        if len(self.rates.base_currency) != 3:
            errors.append("rates.base_currency must be a 3-letter currency code")
        if self.rates.ttl_hours <= 0:
            errors.append("rates.ttl_hours must be > 0")
        if self.rates.timeout_seconds <= 0:
            errors.append("rates.timeout_seconds must be > 0")

        return errors


def _env_bool(name: str, default: bool) -> bool:
    value = os.environ.get(name, "").strip().lower()
    if value in TRUE_VALUES:
        return True
    if value in FALSE_VALUES:
        return False
    return default


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from a YAML file (defaults when absent).

    Environment variables can override config values:
    - PROFIT_INGEST_DAYFIRST (true/false)
    - PROFIT_INGEST_OCR_LANG
    - TESSERACT_CMD
    - PROFIT_INGEST_RATES_URL
    - PROFIT_INGEST_RATES_TTL_HOURS

    Raises:
        ConfigValidationError: File is not a YAML mapping or values are invalid
    """
    data: dict = {}
    if config_path and config_path.exists():
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ConfigValidationError(f"{config_path} must contain a YAML mapping")

    # Extraction config
    extraction_data = data.get("extraction", {}) or {}
    extraction = ExtractionConfig(
        dayfirst=_env_bool("PROFIT_INGEST_DAYFIRST", bool(extraction_data.get("dayfirst", False))),
        ocr_language=os.environ.get(
            "PROFIT_INGEST_OCR_LANG", extraction_data.get("ocr_language", "eng")
        ),
        ocr_page_segmentation=int(extraction_data.get("ocr_page_segmentation", 3)),
        tesseract_cmd=os.environ.get("TESSERACT_CMD", extraction_data.get("tesseract_cmd")),
        lookahead_lines=int(extraction_data.get("lookahead_lines", 3)),
        min_line_length=int(extraction_data.get("min_line_length", 10)),
        min_amount_line_length=int(extraction_data.get("min_amount_line_length", 5)),
    )

    # Categorization config
    categorization_data = data.get("categorization", {}) or {}
    taxonomy = categorization_data.get("taxonomy")
    categorization = (
        CategorizationConfig(
            taxonomy={str(key): [str(label) for label in labels] for key, labels in taxonomy.items()}
        )
        if isinstance(taxonomy, dict)
        else CategorizationConfig()
    )

    # Rates config
    rates_data = data.get("rates", {}) or {}
    ttl_env = os.environ.get("PROFIT_INGEST_RATES_TTL_HOURS", "")
    ttl_hours = rates_data.get("ttl_hours", 24)
    if ttl_env:
        try:
            ttl_hours = float(ttl_env)
        except ValueError:
            pass  # Keep file/default value

    rates = RatesConfig(
        api_url=os.environ.get("PROFIT_INGEST_RATES_URL", rates_data.get("api_url", DEFAULT_RATES_URL)),
        base_currency=str(rates_data.get("base_currency", "USD")).upper(),
        ttl_hours=float(ttl_hours),
        timeout_seconds=int(rates_data.get("timeout_seconds", 10)),
        max_retries=int(rates_data.get("max_retries", 2)),
    )

    config = Config(extraction=extraction, categorization=categorization, rates=rates)

    errors = config.validate()
    if errors:
        raise ConfigValidationError("; ".join(errors))

    return config


def create_default_config(config_path: Path) -> None:
    """Create a default configuration file."""
    default_config = """# profit-ingest configuration
#
# Every key is optional; missing keys use the defaults shown here.
# Environment overrides: PROFIT_INGEST_DAYFIRST, PROFIT_INGEST_OCR_LANG,
# TESSERACT_CMD, PROFIT_INGEST_RATES_URL, PROFIT_INGEST_RATES_TTL_HOURS

extraction:
  dayfirst: false                 # Read 01/02/2024 as 1 February
  ocr_language: "eng"             # Tesseract language pack
  ocr_page_segmentation: 3        # Tesseract --psm (3 = fully automatic)
  tesseract_cmd: null             # Path to tesseract binary (null = PATH)
  lookahead_lines: 3              # Lines searched below a date line for its amount
  min_line_length: 10             # Shorter lines never carry a dated transaction
  min_amount_line_length: 5       # Shorter lines are ignored by the amount-only pass

# Categories available per transaction type
categorization:
  taxonomy:
    revenue: ["Sales", "Services", "Investments", "Other Income"]
    expense: ["Salaries", "Rent", "Utilities", "Supplies", "Marketing", "Insurance", "Taxes", "Other Expenses"]

# Exchange rates
rates:
  api_url: "https://api.exchangerate-api.com/v4/latest"   # Base currency code is appended
  base_currency: "USD"
  ttl_hours: 24                   # Reuse fetched rates for this long
  timeout_seconds: 10
  max_retries: 2
"""

    config_path.parent.mkdir(parents=True, exist_ok=True)
    with open(config_path, "w") as f:
        f.write(default_config)
