"""
Hypothesis-based property tests for the per-diem engine.

Invariants checked over generated trips:
- One ledger day per calendar date, consecutive, first day = departure date
- Hours in [0, 24]; base allowance is one of the three tiers
- Day nets are never negative and never exceed the base allowance
- The day deduction includes the expat amount exactly on weekdays of
  expat trips, and meal deductions only on days with an allowance
- total_amount == transport + other receipts + day-summed net
- net_per_diem_by_day >= net_per_diem (clamping per day never loses money)
- Identical inputs give identical results
"""

from datetime import date, timedelta
from decimal import Decimal

from hypothesis import given, settings
from hypothesis import strategies as st
from hypothesis.strategies import composite

from travel_engines.per_diem import calculate_expenses, meal_deduction
from travel_kernel.domain.values import ZERO
from travel_modules.expense.config import ExpenseConfig
from travel_modules.expense.models import (
    DayMeals,
    OtherExpense,
    PerDiemRate,
    TransportInfo,
    TransportMode,
    TravelInfo,
)
from travel_modules.expense.rates import RateTable

_RATE = PerDiemRate(
    key="Germany|Standard",
    country="Germany",
    full_day_rate=Decimal("28"),
    partial_day_rate=Decimal("14"),
)
_TABLE = RateTable([_RATE], "Germany|Standard")
_CONFIG = ExpenseConfig()


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def _clock():
    return st.builds(
        lambda h, m: f"{h:02d}:{m:02d}",
        st.integers(min_value=0, max_value=23),
        st.integers(min_value=0, max_value=59),
    ) | st.just("24:00")


_amounts = st.one_of(
    st.none(),
    st.decimals(min_value=-100, max_value=10000, places=2, allow_nan=False),
    st.integers(min_value=-50, max_value=5000),
    st.sampled_from(["", "abc", "12,50", "-3", "7.25"]),
)

_meals = st.builds(DayMeals, breakfast=st.booleans(), lunch=st.booleans(), dinner=st.booleans())


@composite
def trips(draw) -> TravelInfo:
    departure = draw(st.dates(min_value=date(2020, 1, 1), max_value=date(2030, 12, 31)))
    length = draw(st.integers(min_value=0, max_value=20))
    return TravelInfo(
        traveler_name=draw(st.text(min_size=1, max_size=20)),
        purpose="Fuzz",
        destination="Anywhere",
        country="Germany|Standard",
        departure_date=departure,
        arrival_date=departure + timedelta(days=length),
        departure_time=draw(_clock()),
        arrival_time=draw(_clock()),
        is_expat=draw(st.booleans()),
    )


@composite
def transports(draw) -> TransportInfo | None:
    if draw(st.booleans()):
        return None
    return TransportInfo(
        mode=draw(st.sampled_from(list(TransportMode))),
        kilometers=draw(_amounts),
        other_costs=draw(_amounts),
    )


def _run(trip, meals=(), transport=None, expenses=()):
    return calculate_expenses(
        travel_info=trip,
        transport_info=transport,
        day_meals=meals,
        other_expenses=expenses,
        rate_table=_TABLE,
        config=_CONFIG,
    )


# ---------------------------------------------------------------------------
# Properties
# ---------------------------------------------------------------------------


class TestPerDiemProperties:

    @given(trip=trips(), meals=st.lists(_meals, max_size=25))
    @settings(max_examples=200, deadline=None)
    def test_day_partition(self, trip, meals):
        result = _run(trip, meals)
        assert result is not None

        days = [d.day for d in result.day_breakdown]
        assert days[0] == trip.departure_date
        assert all(b - a == timedelta(days=1) for a, b in zip(days, days[1:]))
        assert days[-1] <= trip.arrival_date
        assert result.day_breakdown[0].is_first_day
        assert result.day_breakdown[-1].is_last_day

    @given(trip=trips(), meals=st.lists(_meals, max_size=25))
    @settings(max_examples=200, deadline=None)
    def test_day_bounds(self, trip, meals):
        result = _run(trip, meals)
        for day in result.day_breakdown:
            assert 0 <= day.hours <= 24
            assert day.base_per_diem in (ZERO, _RATE.partial_day_rate, _RATE.full_day_rate)
            assert ZERO <= day.net_per_diem <= day.base_per_diem
            assert day.meal_deduction >= ZERO

    @given(trip=trips(), meals=st.lists(_meals, max_size=25))
    @settings(max_examples=200, deadline=None)
    def test_deduction_rule(self, trip, meals):
        result = _run(trip, meals)
        for i, day in enumerate(result.day_breakdown):
            day_meals = meals[i] if i < len(meals) else None
            expected = ZERO
            if day.base_per_diem > ZERO:
                expected += meal_deduction(day_meals, _RATE, _CONFIG)
            if trip.is_expat and day.day.weekday() < 5:
                expected += _CONFIG.expat_weekday_deduction
            assert day.meal_deduction == expected

    @given(
        trip=trips(),
        meals=st.lists(_meals, max_size=25),
        transport=transports(),
        amounts=st.lists(_amounts, max_size=5),
    )
    @settings(max_examples=200, deadline=None)
    def test_totals_identity(self, trip, meals, transport, amounts):
        expenses = [OtherExpense(str(i), "Beleg", a) for i, a in enumerate(amounts)]
        result = _run(trip, meals, transport, expenses)

        assert result.transport_cost >= ZERO
        assert result.other_expenses_total >= ZERO
        assert result.total_amount == (
            result.transport_cost + result.other_expenses_total + result.net_per_diem_by_day
        )
        assert result.net_per_diem_by_day == sum(
            (d.net_per_diem for d in result.day_breakdown), ZERO
        )
        assert result.net_per_diem_by_day >= result.net_per_diem >= ZERO

    @given(trip=trips(), meals=st.lists(_meals, max_size=25))
    @settings(max_examples=100, deadline=None)
    def test_deterministic(self, trip, meals):
        assert _run(trip, meals) == _run(trip, meals)

    @given(trip=trips())
    @settings(max_examples=100, deadline=None)
    def test_meals_never_increase_net(self, trip):
        bare = _run(trip)
        fed = _run(trip, [DayMeals(True, True, True)] * 25)
        assert fed.net_per_diem_by_day <= bare.net_per_diem_by_day
