"""Integer money helpers.

Amounts are integers in one currency unit. Rates and percentages may be
fractional, so intermediate products go through ``Decimal`` and are floored
back to an integer.
"""

from decimal import ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP, Decimal
from numbers import Real

ROUNDING = {
    "floor": ROUND_FLOOR,
    "round": ROUND_HALF_UP,
    "ceil": ROUND_CEILING,
}


def to_decimal(value: Real) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() so 0.1 stays a tenth instead of its binary approximation.
    return Decimal(str(value))


def to_int(value: Decimal, mode: str = "floor") -> int:
    return int(value.to_integral_value(rounding=ROUNDING[mode]))


def percent_of(amount: int, percent: Real) -> int:
    """``floor(amount * percent / 100)``."""
    return to_int(Decimal(amount) * to_decimal(percent) / 100)


def clamp(value: int, low: int, high: int) -> int:
    return max(low, min(value, high))
