"""
travel_config -- single public entrypoint for travel expense configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  Returns a ``PerDiemConfigSet`` holding the
    statutory rate table and constants.  YAML loading lives in
    ``travel_config.loader``.

Failure modes:
    - ``ConfigurationError`` -- missing fragment file or required key.
    - ``yaml.YAMLError`` -- malformed fragment.

Audit relevance:
    Every uncached ``get_active_config()`` call emits a
    ``TRAVEL_CONFIG_TRACE`` log entry with config_id, version, rule version,
    checksum and rate count, tying each calculation to the exact table
    that governed it.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from travel_config.loader import load_config_set
from travel_config.schema import PerDiemConfigSet

_logger = logging.getLogger("travel_kernel.config")

DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets" / "DE-BMF-2026"

_cache: dict[Path, PerDiemConfigSet] = {}
_cache_lock = threading.Lock()


def get_active_config(config_dir: Path | None = None) -> PerDiemConfigSet:
    """The ONLY public configuration entrypoint.

    Loads the configuration set in ``config_dir`` (default: the shipped
    BMF 2026 set) once per directory and returns the cached set afterwards.
    """
    directory = (config_dir or DEFAULT_CONFIG_DIR).resolve()
    with _cache_lock:
        cached = _cache.get(directory)
    if cached is not None:
        return cached

    config_set = load_config_set(directory)
    _logger.info(
        "TRAVEL_CONFIG_TRACE",
        extra={
            "config_id": config_set.config_id,
            "config_version": config_set.version,
            "rule_version": config_set.rule_version,
            "checksum": config_set.checksum,
            "rate_count": len(config_set.rates),
            "config_dir": str(directory),
        },
    )
    with _cache_lock:
        _cache[directory] = config_set
    return config_set


def clear_config_cache() -> None:
    """Drop cached configuration sets. FOR TESTING ONLY."""
    with _cache_lock:
        _cache.clear()


__all__ = [
    "DEFAULT_CONFIG_DIR",
    "PerDiemConfigSet",
    "clear_config_cache",
    "get_active_config",
]
