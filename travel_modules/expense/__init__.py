"""
Travel Expense Module (``travel_modules.expense``).

Responsibility
--------------
Value objects of a Reisekosten claim, the statutory per-diem rate table,
the module configuration schema, and (in ``service``) the facade that
wires configuration, the per-diem engine and the document export.

Architecture position
---------------------
**Modules layer** -- ``models``, ``rates`` and ``config`` are pure data
with no engine dependency; ``travel_engines`` builds on them.  The
service facade is imported explicitly as
``travel_modules.expense.service``.
"""

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
from travel_modules.expense.rates import RateTable, rate_key

__all__ = [
    "DayCalculation",
    "DayMeals",
    "ExpenseCalculation",
    "ExpenseConfig",
    "OtherExpense",
    "PerDiemRate",
    "RateTable",
    "TransportInfo",
    "TransportMode",
    "TravelInfo",
    "rate_key",
]
