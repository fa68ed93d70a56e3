"""Monetary rounding shared by the refund calculators."""

import math
from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def round2(value: float) -> float:
    """Round half-up to 2 decimals (e.g. 0.125 -> 0.13).

    Goes through the shortest decimal repr of the float so that values such
    as 1.005 round the way a cashier would rather than the way binary
    floating point stores them.
    """
    return float(Decimal(repr(float(value))).quantize(_CENT, rounding=ROUND_HALF_UP))


def as_amount(value) -> float | None:
    """Coerce a stored price field to a float, or None when unusable.

    Non-numeric strings, NaN, infinities and negative numbers are unusable.
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number) or number < 0:
        return None
    return number
