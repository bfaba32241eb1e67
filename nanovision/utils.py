"""
Numeric helpers shared by the extractor and the scoring engine
"""
from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float]


def clamp(value: Number, low: Number, high: Number) -> Number:
    """Constrain value to the closed interval [low, high]."""
    return min(high, max(low, value))


def round_half_up(value: Number, places: int = 0) -> Number:
    """
    Round to a fixed number of decimal places, ties away from zero.

    Works on the exact binary value of the float (Decimal(float) is exact),
    so 0.125 -> 0.13 but 1.005 -> 1.0. Returns an int for places == 0.
    """
    quantum = Decimal(1).scaleb(-places)
    rounded = Decimal(value).quantize(quantum, rounding=ROUND_HALF_UP)
    if places == 0:
        return int(rounded)
    return float(rounded)
