"""Tests for ExpenseConfig validation and construction from a config set."""

from decimal import Decimal

import pytest

from travel_modules.expense.config import ExpenseConfig


class TestDefaults:

    def test_statutory_defaults(self):
        config = ExpenseConfig()
        assert config.full_day_hours == 24
        assert config.partial_day_hours == 8
        assert config.breakfast_factor == Decimal("0.20")
        assert config.lunch_factor == Decimal("0.40")
        assert config.dinner_factor == Decimal("0.40")
        assert config.expat_weekday_deduction == Decimal("15.00")
        assert config.mileage_rate_per_km == Decimal("0.30")
        assert config.document_prefix == "ter"

    def test_from_config_set(self, config_set):
        config = ExpenseConfig.from_config_set(config_set)
        assert config == ExpenseConfig(
            currency="EUR",
            rule_version="DE_TRAVEL_RULES_2026_01",
        )


class TestValidation:

    def test_full_below_partial(self):
        with pytest.raises(ValueError, match="full_day_hours"):
            ExpenseConfig(full_day_hours=6, partial_day_hours=8)

    def test_negative_partial_hours(self):
        with pytest.raises(ValueError, match="partial_day_hours"):
            ExpenseConfig(partial_day_hours=-1)

    @pytest.mark.parametrize(
        "field",
        [
            "breakfast_factor",
            "lunch_factor",
            "dinner_factor",
            "expat_weekday_deduction",
            "mileage_rate_per_km",
        ],
    )
    def test_negative_amounts(self, field):
        with pytest.raises(ValueError, match=field):
            ExpenseConfig(**{field: Decimal("-0.01")})

    def test_blank_prefix(self):
        with pytest.raises(ValueError, match="document_prefix"):
            ExpenseConfig(document_prefix="  ")

    def test_frozen(self):
        config = ExpenseConfig()
        with pytest.raises(AttributeError):
            config.mileage_rate_per_km = Decimal("1")
