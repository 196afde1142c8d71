"""
PerDiemConfigSet schema.

Defines the human-authored, reviewable source artifact for travel expense
configuration. YAML fragments are parsed into these types by the loader
and handed to the modules layer, which builds its rate table and
``ExpenseConfig`` from them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal

# ---------------------------------------------------------------------------
# Rates
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RateDef:
    """One row of the statutory per-diem table."""

    country: str
    city: str
    full_day: Decimal
    partial_day: Decimal

    @property
    def key(self) -> str:
        return f"{self.country}|{self.city}"


# ---------------------------------------------------------------------------
# Statutory settings
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class MealDeductionFactors:
    """Share of the full-day rate withheld per employer-provided meal."""

    breakfast: Decimal = Decimal("0.20")
    lunch: Decimal = Decimal("0.40")
    dinner: Decimal = Decimal("0.40")


@dataclass(frozen=True)
class PerDiemSettings:
    """Constants that drive the per-diem engine."""

    default_rate_key: str
    document_prefix: str = "ter"
    mileage_rate_per_km: Decimal = Decimal("0.30")
    full_day_hours: int = 24
    partial_day_hours: int = 8
    meal_deduction_factors: MealDeductionFactors = field(
        default_factory=MealDeductionFactors
    )
    expat_weekday_deduction: Decimal = Decimal("15.00")


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PerDiemConfigSet:
    """A complete, versioned configuration set."""

    config_id: str
    version: int
    rule_version: str
    currency: str
    effective_from: date
    settings: PerDiemSettings
    rates: tuple[RateDef, ...] = ()
    checksum: str = ""
