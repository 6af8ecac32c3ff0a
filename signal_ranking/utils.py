"""Numeric helpers shared by the scorer and the providers."""

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


def round_to(value: float, digits: int = 2) -> float:
    """Half-up rounding to a fixed number of decimals."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def clamp(value: float, low: float, high: float) -> float:
    if value != value:  # NaN
        return low
    return max(low, min(high, value))
