"""
Fixed-point money helpers.

Rounding policy: every computed monetary component is quantized to two
decimal places with ROUND_HALF_UP. Aggregates are sums of already-rounded
components, never re-rounded, so invoice totals reconcile exactly.
"""

from __future__ import annotations

from decimal import Decimal, ROUND_FLOOR, ROUND_HALF_UP, InvalidOperation
from typing import Any

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """Coerce ints, strings and Decimals to Decimal. Floats go through str()."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise TypeError("boolean is not a monetary value")
    if isinstance(value, float):
        return Decimal(str(value))
    try:
        return Decimal(value)
    except (InvalidOperation, TypeError) as exc:
        raise TypeError(f"not a decimal value: {value!r}") from exc


def quantize_money(value: Any) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


def percent_of(amount: Any, rate: Any) -> Decimal:
    """amount x rate / 100, rounded to the cent."""
    return quantize_money(to_decimal(amount) * to_decimal(rate) / HUNDRED)


def floor_int(value: Any) -> int:
    return int(to_decimal(value).to_integral_value(rounding=ROUND_FLOOR))


def as_number(value: Decimal | None) -> float | None:
    """Render a stored amount as a plain JSON number."""
    if value is None:
        return None
    return float(value)
