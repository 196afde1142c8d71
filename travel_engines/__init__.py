"""
Module: travel_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    calculation engines.  This is the canonical import surface for the
    service layer.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
    - Decimal-only arithmetic for all monetary amounts.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine invocation is traced via ``@traced_engine`` (see
    ``travel_engines.tracer``), emitting TRAVEL_ENGINE_TRACE log records
    with engine name, version, input fingerprint, and duration.
"""

from travel_engines.per_diem import (
    ENGINE_NAME,
    ENGINE_VERSION,
    calculate_expenses,
    calculate_other_expenses_total,
    calculate_transport_cost,
    make_document_name,
)
from travel_engines.tracer import compute_input_fingerprint, traced_engine

__all__ = [
    "ENGINE_NAME",
    "ENGINE_VERSION",
    "calculate_expenses",
    "calculate_other_expenses_total",
    "calculate_transport_cost",
    "compute_input_fingerprint",
    "make_document_name",
    "traced_engine",
]
