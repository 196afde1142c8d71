"""
Tests for configuration loading.

Covers the shipped BMF 2026 set, the get_active_config() entrypoint and
its trace record, and the loader's failure modes on broken fragments.
"""

from datetime import date
from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from travel_config import DEFAULT_CONFIG_DIR, clear_config_cache, get_active_config
from travel_config.loader import (
    RATES_FILE,
    SETTINGS_FILE,
    compute_checksum,
    load_config_set,
    parse_rate,
    parse_settings,
)
from travel_kernel.exceptions import ConfigurationError


def _write_set(directory: Path, settings: str | None, rates: str | None) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    if settings is not None:
        (directory / SETTINGS_FILE).write_text(settings, encoding="utf-8")
    if rates is not None:
        (directory / RATES_FILE).write_text(rates, encoding="utf-8")
    return directory


_SETTINGS = """\
config_id: TEST-1
version: 3
rule_version: TEST_RULES
currency: EUR
effective_from: 2026-01-01
default_rate_key: Germany|Standard
mileage_rate_per_km: "0.38"
"""

_RATES = """\
rates:
  - {country: Germany, city: Standard, full_day: "28", partial_day: "14"}
  - {country: Norway, full_day: "55", partial_day: "37"}
"""


class TestShippedConfigSet:

    def test_loads(self):
        config_set = load_config_set(DEFAULT_CONFIG_DIR)

        assert config_set.config_id == "DE-BMF-2026"
        assert config_set.currency == "EUR"
        assert config_set.effective_from == date(2026, 1, 1)
        assert config_set.rule_version == "DE_TRAVEL_RULES_2026_01"

    def test_statutory_constants(self):
        settings = load_config_set(DEFAULT_CONFIG_DIR).settings

        assert settings.default_rate_key == "Germany|Standard"
        assert settings.mileage_rate_per_km == Decimal("0.30")
        assert settings.full_day_hours == 24
        assert settings.partial_day_hours == 8
        assert settings.meal_deduction_factors.breakfast == Decimal("0.20")
        assert settings.meal_deduction_factors.lunch == Decimal("0.40")
        assert settings.meal_deduction_factors.dinner == Decimal("0.40")
        assert settings.expat_weekday_deduction == Decimal("15.00")

    def test_rates_are_decimal(self):
        config_set = load_config_set(DEFAULT_CONFIG_DIR)

        assert len(config_set.rates) > 40
        for row in config_set.rates:
            assert isinstance(row.full_day, Decimal)
            assert isinstance(row.partial_day, Decimal)
            assert row.partial_day <= row.full_day

    def test_rate_keys_unique(self):
        keys = [row.key for row in load_config_set(DEFAULT_CONFIG_DIR).rates]
        assert len(keys) == len(set(keys))

    def test_checksum_deterministic(self):
        a = load_config_set(DEFAULT_CONFIG_DIR)
        b = load_config_set(DEFAULT_CONFIG_DIR)
        assert a.checksum == b.checksum
        assert len(a.checksum) == 64


class TestGetActiveConfig:

    def test_cached(self):
        clear_config_cache()
        assert get_active_config() is get_active_config()

    def test_emits_config_trace(self, captured_logs):
        clear_config_cache()
        get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "TRAVEL_CONFIG_TRACE"]
        assert len(traces) == 1
        assert traces[0]["config_id"] == "DE-BMF-2026"
        assert traces[0]["rate_count"] > 40

    def test_custom_directory(self, tmp_path):
        directory = _write_set(tmp_path / "custom", _SETTINGS, _RATES)
        config_set = get_active_config(directory)

        assert config_set.config_id == "TEST-1"
        assert config_set.version == 3
        assert config_set.settings.mileage_rate_per_km == Decimal("0.38")
        clear_config_cache()


class TestLoaderFailures:

    def test_missing_settings_file(self, tmp_path):
        directory = _write_set(tmp_path, None, _RATES)
        with pytest.raises(ConfigurationError, match="file not found"):
            load_config_set(directory)

    def test_missing_rates_file(self, tmp_path):
        directory = _write_set(tmp_path, _SETTINGS, None)
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_set(directory)
        assert exc_info.value.source.endswith(RATES_FILE)

    def test_missing_required_key(self, tmp_path):
        settings = _SETTINGS.replace("config_id: TEST-1\n", "")
        directory = _write_set(tmp_path, settings, _RATES)
        with pytest.raises(ConfigurationError, match="config_id"):
            load_config_set(directory)

    def test_rates_not_a_list(self, tmp_path):
        directory = _write_set(tmp_path, _SETTINGS, "rates: {Germany: 28}\n")
        with pytest.raises(ConfigurationError, match="must be a list"):
            load_config_set(directory)

    def test_non_numeric_rate(self):
        with pytest.raises(ConfigurationError, match="full_day"):
            parse_rate({"country": "Germany", "full_day": "viel", "partial_day": "14"})

    def test_malformed_yaml(self, tmp_path):
        directory = _write_set(tmp_path, "config_id: [unclosed\n", _RATES)
        with pytest.raises(yaml.YAMLError):
            load_config_set(directory)

    def test_error_code(self, tmp_path):
        with pytest.raises(ConfigurationError) as exc_info:
            load_config_set(tmp_path)
        assert exc_info.value.code == "CONFIGURATION_ERROR"


class TestParsing:

    def test_city_defaults_to_standard(self):
        row = parse_rate({"country": "Norway", "full_day": "55", "partial_day": "37"})
        assert row.city == "Standard"
        assert row.key == "Norway|Standard"

    def test_settings_defaults(self):
        settings = parse_settings({"default_rate_key": "Germany|Standard"})
        assert settings.document_prefix == "ter"
        assert settings.full_day_hours == 24
        assert settings.expat_weekday_deduction == Decimal("15.00")

    def test_checksum_key_order_independent(self):
        assert compute_checksum({"a": 1, "b": 2}) == compute_checksum({"b": 2, "a": 1})
        assert compute_checksum({"a": 1}) != compute_checksum({"a": 2})
