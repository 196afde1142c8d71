"""
Travel Expense Domain Models.

The nouns of a German business-travel claim: the trip, how the traveler
got there, extra receipts, employer-provided meals, the per-diem rates,
and the day-by-day calculation the engine produces.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Union

AmountLike = Union[Decimal, int, float, str, None]


class TransportMode(str, Enum):
    """How the traveler got to the destination."""
    CAR = "car"
    PUBLIC = "public"
    PLANE = "plane"
    OTHER = "other"


@dataclass(frozen=True)
class TravelInfo:
    """
    Trip metadata as entered on the claim form.

    Dates are naive calendar dates; times are ``"HH:MM"`` wall-clock
    strings where ``"24:00"`` denotes midnight at the end of the day.
    Either date may be None while the form is still being filled in.
    """
    traveler_name: str
    purpose: str
    destination: str
    country: str  # rate-table key, e.g. "France|Paris"
    departure_date: date | None
    arrival_date: date | None
    departure_time: str = "00:00"
    arrival_time: str = "23:59"
    is_expat: bool = False


@dataclass(frozen=True)
class TransportInfo:
    """Transport details. Amount fields are coerced by the engine."""
    mode: TransportMode = TransportMode.CAR
    route: str | None = None
    kilometers: AmountLike = None  # car only
    other_costs: AmountLike = None  # flat ticket / fare cost


@dataclass(frozen=True)
class OtherExpense:
    """A miscellaneous receipt line (parking, hotel, taxi, ...)."""
    expense_id: str
    description: str
    amount: AmountLike
    receipt_file_name: str | None = None


@dataclass(frozen=True)
class DayMeals:
    """
    Employer-provided meals for one trip day.

    Matched to trip days by position (day offset from departure), never by
    ``day``; the date is informational only.
    """
    breakfast: bool = False
    lunch: bool = False
    dinner: bool = False
    day: date | None = None


@dataclass(frozen=True)
class PerDiemRate:
    """Statutory Verpflegungsmehraufwand rates for a country or city."""
    key: str  # "<Country>|<City or Standard>"
    country: str
    full_day_rate: Decimal  # >= 24h away
    partial_day_rate: Decimal  # 8h to < 24h away
    city: str = "Standard"
    currency: str = "EUR"

    def __post_init__(self) -> None:
        if self.full_day_rate < Decimal("0"):
            raise ValueError(
                f"full_day_rate cannot be negative: {self.full_day_rate}"
            )
        if self.partial_day_rate < Decimal("0"):
            raise ValueError(
                f"partial_day_rate cannot be negative: {self.partial_day_rate}"
            )

    @property
    def label(self) -> str:
        if self.city == "Standard":
            return self.country
        return f"{self.country} ({self.city})"


@dataclass(frozen=True)
class DayCalculation:
    """One calendar day of the per-diem ledger."""
    day: date
    hours: int
    base_per_diem: Decimal
    meal_deduction: Decimal  # meals + expat adjustment
    net_per_diem: Decimal  # never negative
    is_first_day: bool
    is_last_day: bool
    is_full_day: bool

    @property
    def is_only_day(self) -> bool:
        return self.is_first_day and self.is_last_day


@dataclass(frozen=True)
class ExpenseCalculation:
    """
    Aggregate result of one claim calculation.

    ``net_per_diem`` clamps the aggregate difference
    ``total_per_diem - total_meal_deduction`` at zero, while
    ``net_per_diem_by_day`` sums the already clamped day nets. The two
    differ whenever a single day's deductions exceed its allowance.
    ``total_amount`` is built from ``net_per_diem_by_day``.
    """
    transport_cost: Decimal
    other_expenses_total: Decimal
    total_per_diem: Decimal
    total_meal_deduction: Decimal
    net_per_diem: Decimal
    net_per_diem_by_day: Decimal
    total_amount: Decimal
    document_name: str
    rate: PerDiemRate
    day_breakdown: tuple[DayCalculation, ...] = field(default_factory=tuple)
    currency: str = "EUR"
    rule_version: str = ""

    @property
    def total_days(self) -> int:
        return len(self.day_breakdown)
