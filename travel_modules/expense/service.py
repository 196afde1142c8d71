"""
Travel Expense Service (``travel_modules.expense.service``).

Responsibility
--------------
Facade for the surrounding application shell: resolves the active
configuration, runs the pure per-diem engine, prepares the per-day meal
form, and hands finished calculations to the PDF export.

Architecture position
---------------------
**Modules layer** -- thin glue.  Holds no mutable state between calls;
the rate table and config are read-only and may be shared across
threads.  Callers recompute whenever an input changes and may memoize on
``input_fingerprint``.

Failure modes
-------------
* Incomplete trip dates -> ``calculate`` returns None (logged at INFO,
  not an error).
* ``ConfigurationError`` from loading the configuration set propagates
  from the constructor.
* ``DocumentExportError`` from ``export`` propagates.

Usage::

    service = ExpenseClaimService()
    calculation = service.calculate(travel_info, transport_info, day_meals)
    if calculation is not None:
        path = service.export(calculation, travel_info, transport_info, [])
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date, timedelta
from pathlib import Path
from uuid import uuid4

from travel_config import get_active_config
from travel_config.schema import PerDiemConfigSet
from travel_engines.per_diem import calculate_expenses, resolve_trip_window
from travel_engines.tracer import compute_input_fingerprint
from travel_kernel.logging_config import LogContext, get_logger
from travel_modules.expense.config import ExpenseConfig
from travel_modules.expense.models import (
    DayMeals,
    ExpenseCalculation,
    OtherExpense,
    TransportInfo,
    TravelInfo,
)
from travel_modules.expense.rates import RateTable
from travel_services.document_export import export_expense_pdf

logger = get_logger("modules.expense.service")

_FINGERPRINT_FIELDS = ("travel_info", "transport_info", "day_meals", "other_expenses")


class ExpenseClaimService:
    """Calculates and exports Reisekosten claims."""

    def __init__(
        self,
        config_set: PerDiemConfigSet | None = None,
        config: ExpenseConfig | None = None,
        rate_table: RateTable | None = None,
    ):
        config_set = config_set or get_active_config()
        self._config = config or ExpenseConfig.from_config_set(config_set)
        self._rate_table = rate_table or RateTable.from_config_set(config_set)

    @property
    def config(self) -> ExpenseConfig:
        return self._config

    @property
    def rate_table(self) -> RateTable:
        return self._rate_table

    # =========================================================================
    # Calculation
    # =========================================================================

    def calculate(
        self,
        travel_info: TravelInfo | None,
        transport_info: TransportInfo | None,
        day_meals: Sequence[DayMeals],
        other_expenses: Sequence[OtherExpense] = (),
    ) -> ExpenseCalculation | None:
        """Run the per-diem engine; None while the trip is incomplete."""
        traveler = travel_info.traveler_name if travel_info else None
        with LogContext.bind(correlation_id=str(uuid4()), traveler=traveler):
            result = calculate_expenses(
                travel_info=travel_info,
                transport_info=transport_info,
                day_meals=tuple(day_meals),
                other_expenses=tuple(other_expenses),
                rate_table=self._rate_table,
                config=self._config,
            )
            if result is None:
                logger.info(
                    "expense_calculation_incomplete",
                    extra={
                        "has_travel_info": travel_info is not None,
                        "has_departure_date": bool(travel_info and travel_info.departure_date),
                        "has_arrival_date": bool(travel_info and travel_info.arrival_date),
                    },
                )
                return None

            logger.info(
                "expense_calculated",
                extra={
                    "document_name": result.document_name,
                    "rate_key": result.rate.key,
                    "day_count": result.total_days,
                    "total_per_diem": str(result.total_per_diem),
                    "total_meal_deduction": str(result.total_meal_deduction),
                    "net_per_diem_by_day": str(result.net_per_diem_by_day),
                    "transport_cost": str(result.transport_cost),
                    "other_expenses_total": str(result.other_expenses_total),
                    "total_amount": str(result.total_amount),
                },
            )
            return result

    @staticmethod
    def input_fingerprint(
        travel_info: TravelInfo | None,
        transport_info: TransportInfo | None,
        day_meals: Sequence[DayMeals],
        other_expenses: Sequence[OtherExpense] = (),
    ) -> str:
        """Stable hash of the calculation inputs, usable as a cache key."""
        return compute_input_fingerprint(
            _FINGERPRINT_FIELDS,
            {
                "travel_info": travel_info,
                "transport_info": transport_info,
                "day_meals": tuple(day_meals),
                "other_expenses": tuple(other_expenses),
            },
        )

    # =========================================================================
    # Meal form
    # =========================================================================

    def build_day_meals(
        self,
        travel_info: TravelInfo | None,
        existing: Sequence[DayMeals] = (),
    ) -> list[DayMeals]:
        """
        One meal record per trip day, keeping flags already entered.

        Existing records are carried over by position; new days start with
        no meals provided.  Returns an empty list while the trip is
        incomplete.
        """
        if travel_info is None:
            return []
        window = resolve_trip_window(travel_info)
        if window is None:
            return []
        first_day: date = travel_info.departure_date
        total_days = (window[2] - first_day).days + 1

        meals: list[DayMeals] = []
        for index in range(total_days):
            day = first_day + timedelta(days=index)
            if index < len(existing):
                previous = existing[index]
                meals.append(DayMeals(
                    breakfast=previous.breakfast,
                    lunch=previous.lunch,
                    dinner=previous.dinner,
                    day=day,
                ))
            else:
                meals.append(DayMeals(day=day))
        return meals

    # =========================================================================
    # Export
    # =========================================================================

    def export(
        self,
        calculation: ExpenseCalculation,
        travel_info: TravelInfo,
        transport_info: TransportInfo | None,
        other_expenses: Sequence[OtherExpense] = (),
        logo: bytes | None = None,
        output_dir: Path | str = ".",
    ) -> Path:
        """Write the claim PDF; returns the path of ``<document_name>.pdf``."""
        with LogContext.bind(
            document_name=calculation.document_name,
            traveler=travel_info.traveler_name,
        ):
            return export_expense_pdf(
                calculation,
                travel_info,
                transport_info,
                other_expenses,
                logo,
                output_dir=output_dir,
                mileage_rate_per_km=self._config.mileage_rate_per_km,
            )
