"""
Values -- Decimal coercion and rounding for monetary amounts.

Responsibility:
    Turns loosely typed form values (str, int, float, Decimal, None) into
    non-negative ``Decimal`` amounts and rounds them to cents.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts leaving ``coerce_amount`` are finite, non-negative Decimals
      below ``10 ** (MAX_AMOUNT_EXPONENT + 1)``, so any sum or product of
      a few of them still quantizes to cents in the default context.
    - Rounding is always ROUND_HALF_UP to two places.

Accepted text forms:
    ``"1234.56"``, ``"1234,56"`` and the German grouped form
    ``"1.234,56"`` (grouping only together with a decimal comma, so
    ``"1.500"`` stays 1.5).  English grouping (``"1,234.56"``) is not
    accepted.

Failure modes:
    - None. Malformed, negative, NaN, infinite or out-of-range input
      coerces to zero.
"""

from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ZERO = Decimal("0")
CENT = Decimal("0.01")

# Largest accepted power of ten (amounts below one trillion)
MAX_AMOUNT_EXPONENT = 11

_GERMAN_GROUPED = re.compile(r"^[+-]?\d{1,3}(\.\d{3})+,\d+$")


def _normalize_text(text: str) -> str:
    if _GERMAN_GROUPED.match(text):
        return text.replace(".", "").replace(",", ".")
    # German decimal comma ("12,50")
    if "," in text and "." not in text:
        return text.replace(",", ".")
    return text


def to_decimal(value: Any) -> Decimal | None:
    """Convert ``value`` to Decimal, or None when it is not a usable number."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        result = value
    else:
        text = str(value).strip()
        if not text:
            return None
        try:
            result = Decimal(_normalize_text(text))
        except (InvalidOperation, ValueError):
            return None
    if not result.is_finite():
        return None
    if result and result.adjusted() > MAX_AMOUNT_EXPONENT:
        return None
    return result


def coerce_amount(value: Any) -> Decimal:
    """
    Coerce a form value to a non-negative Decimal amount.

    Postconditions:
        - Non-numeric, non-finite, out-of-range and negative input
          returns ``ZERO``.
    """
    result = to_decimal(value)
    if result is None or result < ZERO:
        return ZERO
    return result


def round_money(amount: Decimal) -> Decimal:
    """Round to cents (ROUND_HALF_UP)."""
    return amount.quantize(CENT, rounding=ROUND_HALF_UP)
