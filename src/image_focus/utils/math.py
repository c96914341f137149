"""Numeric helpers shared by the geometry code."""

import math


def clamp_value(value: float, min_val: float, max_val: float) -> float:
    """Clamp value to range [min_val, max_val]."""
    return max(min_val, min(max_val, value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves towards positive infinity."""
    return math.floor(value + 0.5)


def finite_or_zero(value) -> float:
    """Return value as a float, or 0.0 for non-numbers, booleans, NaN and inf."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return 0.0
    try:
        value = float(value)
    except OverflowError:
        return 0.0
    if not math.isfinite(value):
        return 0.0
    return value
