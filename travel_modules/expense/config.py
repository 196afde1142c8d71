"""
Travel Expense Configuration Schema.

Defines the statutory constants the per-diem engine works with and their
validation.  Actual values are loaded from the active configuration set
at runtime; the field defaults are the 2026 German statutory values.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Self

from travel_config.schema import PerDiemConfigSet
from travel_kernel.logging_config import get_logger

logger = get_logger("modules.expense.config")


@dataclass(frozen=True)
class ExpenseConfig:
    """
    Configuration schema for the expense module.

    Override at instantiation with company-specific values:

        config = ExpenseConfig(
            mileage_rate_per_km=Decimal("0.38"),
            **overrides,
        )
    """

    # Tier thresholds in whole hours present on a calendar day
    full_day_hours: int = 24
    partial_day_hours: int = 8

    # Meal deductions, as a share of the FULL-day rate
    breakfast_factor: Decimal = Decimal("0.20")
    lunch_factor: Decimal = Decimal("0.40")
    dinner_factor: Decimal = Decimal("0.40")

    # Fixed weekday deduction for expatriate travelers
    expat_weekday_deduction: Decimal = Decimal("15.00")

    # Car mileage (Kilometerpauschale)
    mileage_rate_per_km: Decimal = Decimal("0.30")

    # Document naming
    document_prefix: str = "ter"

    currency: str = "EUR"
    rule_version: str = ""

    def __post_init__(self):
        if self.partial_day_hours < 0:
            raise ValueError("partial_day_hours cannot be negative")
        if self.full_day_hours < self.partial_day_hours:
            raise ValueError(
                f"full_day_hours ({self.full_day_hours}) cannot be less than "
                f"partial_day_hours ({self.partial_day_hours})"
            )
        for name in ("breakfast_factor", "lunch_factor", "dinner_factor"):
            if getattr(self, name) < 0:
                raise ValueError(f"{name} cannot be negative")
        if self.expat_weekday_deduction < 0:
            raise ValueError("expat_weekday_deduction cannot be negative")
        if self.mileage_rate_per_km < 0:
            raise ValueError("mileage_rate_per_km cannot be negative")
        if not self.document_prefix.strip():
            raise ValueError("document_prefix cannot be empty")

        logger.debug(
            "expense_config_initialized",
            extra={
                "mileage_rate_per_km": str(self.mileage_rate_per_km),
                "expat_weekday_deduction": str(self.expat_weekday_deduction),
                "rule_version": self.rule_version,
            },
        )

    @classmethod
    def from_config_set(cls, config_set: PerDiemConfigSet) -> Self:
        """Build the module config from a loaded configuration set."""
        settings = config_set.settings
        factors = settings.meal_deduction_factors
        return cls(
            full_day_hours=settings.full_day_hours,
            partial_day_hours=settings.partial_day_hours,
            breakfast_factor=factors.breakfast,
            lunch_factor=factors.lunch,
            dinner_factor=factors.dinner,
            expat_weekday_deduction=settings.expat_weekday_deduction,
            mileage_rate_per_km=settings.mileage_rate_per_km,
            document_prefix=settings.document_prefix,
            currency=config_set.currency,
            rule_version=config_set.rule_version,
        )
