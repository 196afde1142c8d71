"""
Configuration Loader (``travel_config.loader``).

Responsibility
--------------
Loads the YAML fragment files of a configuration set directory
(``settings.yaml`` and ``rates.yaml``) and parses them into the frozen
``travel_config.schema`` dataclasses.  The single public entry point for
runtime config is ``travel_config.get_active_config()``.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* Monetary values are parsed via ``str`` into ``Decimal`` -- never float.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing fragment file  -> ``ConfigurationError``.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys or non-numeric rates  -> ``ConfigurationError``.
"""

from __future__ import annotations

import hashlib
import json
from datetime import date
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from travel_config.schema import (
    MealDeductionFactors,
    PerDiemConfigSet,
    PerDiemSettings,
    RateDef,
)
from travel_kernel.exceptions import ConfigurationError

SETTINGS_FILE = "settings.yaml"
RATES_FILE = "rates.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        ConfigurationError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    if not path.is_file():
        raise ConfigurationError(str(path), "file not found")
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_date(value: Any) -> date:
    """Parse a date from YAML (string or date object)."""
    if isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


def parse_decimal(value: Any, source: str, field_name: str) -> Decimal:
    """Parse a YAML scalar into Decimal via its string form."""
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError) as exc:
        raise ConfigurationError(
            source, f"{field_name} is not a number: {value!r}"
        ) from exc


def _require(data: dict[str, Any], key: str, source: str) -> Any:
    if key not in data:
        raise ConfigurationError(source, f"missing required key '{key}'")
    return data[key]


def parse_rate(data: dict[str, Any], source: str = RATES_FILE) -> RateDef:
    """Parse one rate row."""
    return RateDef(
        country=str(_require(data, "country", source)),
        city=str(data.get("city") or "Standard"),
        full_day=parse_decimal(_require(data, "full_day", source), source, "full_day"),
        partial_day=parse_decimal(
            _require(data, "partial_day", source), source, "partial_day"
        ),
    )


def parse_settings(data: dict[str, Any], source: str = SETTINGS_FILE) -> PerDiemSettings:
    """Parse the statutory settings block."""
    thresholds = data.get("thresholds") or {}
    factors = data.get("meal_deduction_factors") or {}
    defaults = MealDeductionFactors()
    return PerDiemSettings(
        default_rate_key=str(_require(data, "default_rate_key", source)),
        document_prefix=str(data.get("document_prefix", "ter")),
        mileage_rate_per_km=parse_decimal(
            data.get("mileage_rate_per_km", "0.30"), source, "mileage_rate_per_km"
        ),
        full_day_hours=int(thresholds.get("full_day_hours", 24)),
        partial_day_hours=int(thresholds.get("partial_day_hours", 8)),
        meal_deduction_factors=MealDeductionFactors(
            breakfast=parse_decimal(
                factors.get("breakfast", defaults.breakfast), source, "breakfast"
            ),
            lunch=parse_decimal(factors.get("lunch", defaults.lunch), source, "lunch"),
            dinner=parse_decimal(factors.get("dinner", defaults.dinner), source, "dinner"),
        ),
        expat_weekday_deduction=parse_decimal(
            data.get("expat_weekday_deduction", "15.00"),
            source,
            "expat_weekday_deduction",
        ),
    )


def load_config_set(directory: Path) -> PerDiemConfigSet:
    """
    Load and parse a configuration set directory.

    Postconditions:
        - Returns a ``PerDiemConfigSet`` whose ``checksum`` covers both
          fragment files.
    """
    settings_path = directory / SETTINGS_FILE
    rates_path = directory / RATES_FILE
    settings_data = load_yaml_file(settings_path)
    rates_data = load_yaml_file(rates_path)

    rows = rates_data.get("rates")
    if not isinstance(rows, list):
        raise ConfigurationError(str(rates_path), "'rates' must be a list")

    return PerDiemConfigSet(
        config_id=str(_require(settings_data, "config_id", str(settings_path))),
        version=int(settings_data.get("version", 1)),
        rule_version=str(settings_data.get("rule_version", "")),
        currency=str(settings_data.get("currency", "EUR")),
        effective_from=parse_date(
            _require(settings_data, "effective_from", str(settings_path))
        ),
        settings=parse_settings(settings_data, str(settings_path)),
        rates=tuple(parse_rate(row, str(rates_path)) for row in rows),
        checksum=compute_checksum({"settings": settings_data, "rates": rates_data}),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Postconditions:
        - Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
