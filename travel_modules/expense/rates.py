"""
Per-Diem Rate Table (``travel_modules.expense.rates``).

Responsibility
--------------
Immutable lookup from a rate key (``"<Country>|<City or Standard>"``) to
the statutory full-day / partial-day Verpflegungsmehraufwand rates.

Invariants enforced
-------------------
* Keys are unique and the designated default key is present.
* The table never changes after construction; it is safe to share across
  threads without locking.

Failure modes
-------------
* Unknown key on ``lookup`` -> the default (domestic) entry is returned.
  This is a graceful-degradation policy, not an error.
* Duplicate keys or missing default on construction -> ``RateTableError``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from typing import Self

from travel_config.schema import PerDiemConfigSet
from travel_kernel.exceptions import RateTableError
from travel_kernel.logging_config import get_logger
from travel_modules.expense.models import PerDiemRate

logger = get_logger("modules.expense.rates")

STANDARD_CITY = "Standard"


def rate_key(country: str, city: str | None = None) -> str:
    """Build a lookup key; no city means the country default."""
    return f"{country}|{city or STANDARD_CITY}"


class RateTable:
    """Read-only country/city -> rate mapping with a default fallback."""

    def __init__(self, rates: Iterable[PerDiemRate], default_key: str):
        by_key: dict[str, PerDiemRate] = {}
        for rate in rates:
            if rate.key in by_key:
                raise RateTableError(f"duplicate rate key '{rate.key}'", key=rate.key)
            by_key[rate.key] = rate
        if default_key not in by_key:
            raise RateTableError(
                f"default rate key '{default_key}' not in table", key=default_key
            )
        self._rates = by_key
        self._default_key = default_key

    @classmethod
    def from_config_set(cls, config_set: PerDiemConfigSet) -> Self:
        rates = (
            PerDiemRate(
                key=row.key,
                country=row.country,
                city=row.city,
                full_day_rate=row.full_day,
                partial_day_rate=row.partial_day,
                currency=config_set.currency,
            )
            for row in config_set.rates
        )
        return cls(rates, config_set.settings.default_rate_key)

    @property
    def default(self) -> PerDiemRate:
        return self._rates[self._default_key]

    def lookup(self, key: str | None) -> PerDiemRate:
        """Exact-match lookup, falling back to the default entry."""
        rate = self._rates.get(key or "")
        if rate is None:
            logger.debug(
                "per_diem_rate_fallback",
                extra={"requested_key": key, "fallback_key": self._default_key},
            )
            return self.default
        return rate

    def options(self) -> list[tuple[str, str, str, str]]:
        """(key, label, full-day rate, partial-day rate) in table order."""
        return [
            (rate.key, rate.label, str(rate.full_day_rate), str(rate.partial_day_rate))
            for rate in self._rates.values()
        ]

    def keys(self) -> list[str]:
        return list(self._rates)

    def __contains__(self, key: object) -> bool:
        return key in self._rates

    def __iter__(self) -> Iterator[PerDiemRate]:
        return iter(self._rates.values())

    def __len__(self) -> int:
        return len(self._rates)
