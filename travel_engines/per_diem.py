"""
Per-Diem Engine (``travel_engines.per_diem``).

Responsibility
--------------
Turns a trip (departure/arrival date-time, per-day meal flags, transport
and receipts) into the day-by-day Verpflegungsmehraufwand ledger and the
claim totals.

Architecture position
---------------------
**Engines layer** -- pure functional core.  ZERO I/O, ZERO clock reads.
Rates and statutory constants are passed in by the caller.

Invariants enforced
-------------------
* Trip days are partitioned by calendar date, inclusive, minimum one.
* Hours present are whole hours, truncated, never negative.
* Base allowance tiers: ``>= 24h`` full rate, ``>= 8h`` partial rate,
  otherwise zero.  Lower bounds are inclusive.
* Meal deductions are a share of the FULL-day rate, even on partial days,
  and apply only to days with a base allowance.
* Expat deduction applies to Monday-Friday dates only.
* Day net allowance is floored at zero.
* Meal records are matched to days by position, never by date.
* All monetary values are ``Decimal``.

Failure modes
-------------
* Missing departure/arrival date -> ``None`` (form not complete yet).
* Arrival calendar day before departure -> ``None``.
* A time that runs past 9999-12-31 -> ``None``.
* Malformed amounts, kilometres or times -> coerced to zero.
* Nothing is raised for structurally present input.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from datetime import date, datetime, time, timedelta
from decimal import Decimal

from travel_engines.tracer import traced_engine
from travel_kernel.domain.values import ZERO, coerce_amount, round_money
from travel_modules.expense.config import ExpenseConfig
from travel_modules.expense.models import (
    DayCalculation,
    DayMeals,
    ExpenseCalculation,
    OtherExpense,
    PerDiemRate,
    TransportInfo,
    TransportMode,
    TravelInfo,
)
from travel_modules.expense.rates import RateTable

ENGINE_NAME = "per_diem"
ENGINE_VERSION = "1.0"

DEFAULT_DEPARTURE_TIME = "00:00"
DEFAULT_ARRIVAL_TIME = "23:59"

_END_OF_DAY = time(23, 59)
_WHITESPACE = re.compile(r"\s+")


# ---------------------------------------------------------------------------
# Date-time resolution
# ---------------------------------------------------------------------------


def parse_time(value: str | None, default: str) -> tuple[int, int]:
    """Split ``"HH:MM"`` into (hours, minutes); unparseable parts are 0."""
    text = (value or "").strip() or default
    parts = text.split(":")

    def _part(index: int) -> int:
        if index >= len(parts):
            return 0
        piece = parts[index].strip()
        return int(piece) if piece.isascii() and piece.isdigit() else 0

    return _part(0), _part(1)


def combine(day: date, value: str | None, default: str) -> datetime:
    """
    Build a naive wall-clock datetime.

    ``"24:00"`` lands on midnight of the following day.
    """
    hours, minutes = parse_time(value, default)
    return datetime.combine(day, time.min) + timedelta(hours=hours, minutes=minutes)


def resolve_trip_window(travel_info: TravelInfo) -> tuple[datetime, datetime, date] | None:
    """
    Resolve (departure instant, arrival instant, last trip day).

    An arrival at exactly midnight on a later date ends the trip at 24:00
    of the previous day, so that date is not part of the trip.

    Returns None when either date is missing, the last trip day lies
    before the departure date, or a time runs past the last representable
    date.
    """
    if travel_info.departure_date is None or travel_info.arrival_date is None:
        return None

    try:
        departure = combine(
            travel_info.departure_date, travel_info.departure_time, DEFAULT_DEPARTURE_TIME
        )
        arrival = combine(
            travel_info.arrival_date, travel_info.arrival_time, DEFAULT_ARRIVAL_TIME
        )
    except OverflowError:
        return None

    last_day = travel_info.arrival_date
    if (
        arrival == datetime.combine(last_day, time.min)
        and last_day > travel_info.departure_date
    ):
        last_day -= timedelta(days=1)

    if last_day < travel_info.departure_date:
        return None
    return departure, arrival, last_day


def whole_hours(start: datetime, end: datetime) -> int:
    """Whole hours between two instants, truncated, never negative."""
    seconds = (end - start).total_seconds()
    return max(0, int(seconds / 3600))


def hours_on_day(
    index: int,
    total_days: int,
    day: date,
    departure: datetime,
    arrival: datetime,
) -> int:
    """Hours present on trip day ``index``."""
    if total_days == 1:
        return whole_hours(departure, arrival)
    if index == 0:
        return whole_hours(departure, datetime.combine(day, _END_OF_DAY))
    if index == total_days - 1:
        return whole_hours(datetime.combine(day, time.min), arrival)
    return 24


# ---------------------------------------------------------------------------
# Allowance and deductions
# ---------------------------------------------------------------------------


def base_allowance(hours: int, rate: PerDiemRate, config: ExpenseConfig) -> Decimal:
    """Tiered allowance for the hours present on one day."""
    if hours >= config.full_day_hours:
        return rate.full_day_rate
    if hours >= config.partial_day_hours:
        return rate.partial_day_rate
    return ZERO


def meal_deduction(
    meals: DayMeals | None,
    rate: PerDiemRate,
    config: ExpenseConfig,
) -> Decimal:
    """Deduction for employer-provided meals, against the full-day rate."""
    if meals is None:
        return ZERO
    deduction = ZERO
    if meals.breakfast:
        deduction += rate.full_day_rate * config.breakfast_factor
    if meals.lunch:
        deduction += rate.full_day_rate * config.lunch_factor
    if meals.dinner:
        deduction += rate.full_day_rate * config.dinner_factor
    return round_money(deduction)


def expat_deduction(day: date, is_expat: bool, config: ExpenseConfig) -> Decimal:
    """Fixed expatriate deduction; weekdays only."""
    if is_expat and day.weekday() < 5:
        return config.expat_weekday_deduction
    return ZERO


def calculate_day(
    index: int,
    total_days: int,
    first_day: date,
    departure: datetime,
    arrival: datetime,
    meals: DayMeals | None,
    is_expat: bool,
    rate: PerDiemRate,
    config: ExpenseConfig,
) -> DayCalculation:
    """Build the ledger entry for one calendar day of the trip."""
    day = first_day + timedelta(days=index)
    is_first_day = index == 0
    is_last_day = index == total_days - 1
    hours = hours_on_day(index, total_days, day, departure, arrival)

    base = base_allowance(hours, rate, config)
    deduction = ZERO
    if base > ZERO:
        deduction += meal_deduction(meals, rate, config)
    deduction += expat_deduction(day, is_expat, config)

    return DayCalculation(
        day=day,
        hours=hours,
        base_per_diem=base,
        meal_deduction=deduction,
        net_per_diem=max(ZERO, base - deduction),
        is_first_day=is_first_day,
        is_last_day=is_last_day,
        is_full_day=not is_first_day and not is_last_day,
    )


# ---------------------------------------------------------------------------
# Transport, receipts, document name
# ---------------------------------------------------------------------------


def calculate_transport_cost(
    transport_info: TransportInfo | None,
    config: ExpenseConfig,
) -> Decimal:
    """
    Mileage for car trips plus any flat transport cost.

    The two parts are additive; a car record carrying a flat cost gets
    both.
    """
    if transport_info is None:
        return ZERO
    cost = ZERO
    if transport_info.mode == TransportMode.CAR:
        cost += coerce_amount(transport_info.kilometers) * config.mileage_rate_per_km
    cost += coerce_amount(transport_info.other_costs)
    return round_money(cost)


def calculate_other_expenses_total(other_expenses: Sequence[OtherExpense]) -> Decimal:
    """Sum of receipt amounts; negative or non-numeric lines count as 0."""
    total = ZERO
    for expense in other_expenses:
        total += coerce_amount(expense.amount)
    return round_money(total)


def make_document_name(traveler_name: str, departure_date: date, prefix: str = "ter") -> str:
    """``<prefix>_<lowercased_name>_<YYYY-MM-DD>``; whitespace runs become ``_``."""
    sanitized = _WHITESPACE.sub("_", (traveler_name or "").strip()).lower()
    return f"{prefix}_{sanitized}_{departure_date.isoformat()}"


# ---------------------------------------------------------------------------
# Engine entry point
# ---------------------------------------------------------------------------


@traced_engine(
    ENGINE_NAME,
    ENGINE_VERSION,
    fingerprint_fields=("travel_info", "transport_info", "day_meals", "other_expenses"),
)
def calculate_expenses(
    *,
    travel_info: TravelInfo | None,
    transport_info: TransportInfo | None,
    day_meals: Sequence[DayMeals],
    other_expenses: Sequence[OtherExpense] = (),
    rate_table: RateTable,
    config: ExpenseConfig,
) -> ExpenseCalculation | None:
    """
    Calculate the full claim for one trip.

    Preconditions:
        - ``day_meals[i]`` describes trip day ``i``; missing entries mean
          no meals were provided.
    Postconditions:
        - Returns None while the trip dates are incomplete or out of order.
        - ``total_amount == transport_cost + other_expenses_total
          + net_per_diem_by_day``.
        - Identical inputs always produce an identical result.
    """
    if travel_info is None:
        return None
    window = resolve_trip_window(travel_info)
    if window is None:
        return None
    departure, arrival, last_day = window

    rate = rate_table.lookup(travel_info.country)
    first_day = travel_info.departure_date
    total_days = max(1, (last_day - first_day).days + 1)

    days: list[DayCalculation] = []
    total_per_diem = ZERO
    total_deduction = ZERO
    net_by_day = ZERO
    for index in range(total_days):
        meals = day_meals[index] if index < len(day_meals) else None
        day = calculate_day(
            index,
            total_days,
            first_day,
            departure,
            arrival,
            meals,
            travel_info.is_expat,
            rate,
            config,
        )
        days.append(day)
        total_per_diem += day.base_per_diem
        total_deduction += day.meal_deduction
        net_by_day += day.net_per_diem

    transport_cost = calculate_transport_cost(transport_info, config)
    other_total = calculate_other_expenses_total(other_expenses)

    return ExpenseCalculation(
        transport_cost=transport_cost,
        other_expenses_total=other_total,
        total_per_diem=total_per_diem,
        total_meal_deduction=total_deduction,
        net_per_diem=max(ZERO, total_per_diem - total_deduction),
        net_per_diem_by_day=net_by_day,
        total_amount=transport_cost + other_total + net_by_day,
        document_name=make_document_name(
            travel_info.traveler_name,
            first_day,
            config.document_prefix,
        ),
        rate=rate,
        day_breakdown=tuple(days),
        currency=config.currency,
        rule_version=config.rule_version,
    )
