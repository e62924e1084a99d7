"""Lenient numeric helpers for financial math"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

CENT = Decimal("0.01")


def safe_float(value: Any, default: float = 0.0) -> float:
    """Coerce to float; None, garbage, NaN and infinities become the default"""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    return number if math.isfinite(number) else default


def clamp(value: float, lower: float, upper: float) -> float:
    return max(lower, min(upper, value))


def to_money(value: Any) -> float:
    """Round to cents, half a cent away from zero, for display and persistence"""
    return float(Decimal(repr(safe_float(value))).quantize(CENT, rounding=ROUND_HALF_UP))


def round_half_up(value: float) -> int:
    """Nearest integer with .5 rounding up, unlike round()'s banker's rounding"""
    return int(math.floor(value + 0.5))
