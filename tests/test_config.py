"""Tests for configuration loading and validation."""

import pytest

from profit_ingest.categorizer import DEFAULT_TAXONOMY
from profit_ingest.config import (
    DEFAULT_RATES_URL,
    Config,
    ConfigValidationError,
    create_default_config,
    load_config,
)

ENV_VARS = (
    "PROFIT_INGEST_DAYFIRST",
    "PROFIT_INGEST_OCR_LANG",
    "TESSERACT_CMD",
    "PROFIT_INGEST_RATES_URL",
    "PROFIT_INGEST_RATES_TTL_HOURS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


class TestDefaults:
    """Tests for built-in defaults."""

    def test_missing_file_gives_defaults(self, tmp_path):
        config = load_config(tmp_path / "absent.yaml")

        assert config.extraction.dayfirst is False
        assert config.extraction.ocr_language == "eng"
        assert config.extraction.lookahead_lines == 3
        assert config.categorization.taxonomy == DEFAULT_TAXONOMY
        assert config.rates.api_url == DEFAULT_RATES_URL
        assert config.rates.ttl_hours == 24

    def test_no_path(self):
        assert load_config(None).rates.base_currency == "USD"

    def test_defaults_are_valid(self):
        assert Config().validate() == []

    def test_taxonomy_default_is_a_copy(self):
        config = Config()
        config.categorization.taxonomy["expense"].append("Travel")
        assert "Travel" not in DEFAULT_TAXONOMY["expense"]


class TestLoadConfig:
    """Tests for YAML loading."""

    def test_yaml_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(
            "extraction:\n"
            "  dayfirst: true\n"
            "  ocr_language: deu\n"
            "  lookahead_lines: 5\n"
            "categorization:\n"
            "  taxonomy:\n"
            "    revenue: [Sales]\n"
            "    expense: [Rent, Utilities]\n"
            "rates:\n"
            "  base_currency: eur\n"
            "  ttl_hours: 6\n"
        )

        config = load_config(path)

        assert config.extraction.dayfirst is True
        assert config.extraction.ocr_language == "deu"
        assert config.extraction.lookahead_lines == 5
        assert config.categorization.taxonomy == {"revenue": ["Sales"], "expense": ["Rent", "Utilities"]}
        assert config.rates.base_currency == "EUR"
        assert config.rates.ttl_hours == 6.0

    def test_empty_file(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("")
        assert load_config(path).extraction.ocr_language == "eng"

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("- just\n- a list\n")

        with pytest.raises(ConfigValidationError, match="YAML mapping"):
            load_config(path)

    def test_invalid_values(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("rates:\n  ttl_hours: 0\n  base_currency: EURO\n")

        with pytest.raises(ConfigValidationError) as exc_info:
            load_config(path)

        assert "rates.ttl_hours must be > 0" in str(exc_info.value)
        assert "3-letter" in str(exc_info.value)


class TestEnvironmentOverrides:
    """Environment variables win over file values."""

    def test_overrides(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("extraction:\n  dayfirst: false\n  ocr_language: deu\n")
        monkeypatch.setenv("PROFIT_INGEST_DAYFIRST", "yes")
        monkeypatch.setenv("PROFIT_INGEST_OCR_LANG", "fra")
        monkeypatch.setenv("TESSERACT_CMD", "/usr/local/bin/tesseract")
        monkeypatch.setenv("PROFIT_INGEST_RATES_URL", "http://rates.test/latest")
        monkeypatch.setenv("PROFIT_INGEST_RATES_TTL_HOURS", "1.5")

        config = load_config(path)

        assert config.extraction.dayfirst is True
        assert config.extraction.ocr_language == "fra"
        assert config.extraction.tesseract_cmd == "/usr/local/bin/tesseract"
        assert config.rates.api_url == "http://rates.test/latest"
        assert config.rates.ttl_hours == 1.5

    def test_unparseable_ttl_ignored(self, monkeypatch):
        monkeypatch.setenv("PROFIT_INGEST_RATES_TTL_HOURS", "soon")
        assert load_config(None).rates.ttl_hours == 24

    def test_unrecognized_bool_keeps_file_value(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text("extraction:\n  dayfirst: true\n")
        monkeypatch.setenv("PROFIT_INGEST_DAYFIRST", "maybe")

        assert load_config(path).extraction.dayfirst is True


class TestValidate:
    """Tests for Config.validate."""

    def test_collects_errors(self):
        config = Config()
        config.extraction.ocr_language = ""
        config.extraction.ocr_page_segmentation = 20
        config.categorization.taxonomy["transfer"] = ["Internal"]

        errors = config.validate()

        assert "extraction.ocr_language is required" in errors
        assert "extraction.ocr_page_segmentation must be between 0 and 13" in errors
        assert "categorization.taxonomy has unknown types: transfer" in errors


class TestCreateDefaultConfig:
    """Tests for the default config template."""

    def test_round_trip(self, tmp_path):
        path = tmp_path / "nested" / "config.yaml"

        create_default_config(path)
        config = load_config(path)

        assert path.exists()
        assert config.extraction.ocr_page_segmentation == 3
        assert config.categorization.taxonomy == DEFAULT_TAXONOMY
        assert config.rates.api_url == DEFAULT_RATES_URL
        assert config.extraction.tesseract_cmd is None
