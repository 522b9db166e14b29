"""Numeric helpers shared by the hill chart mapper and the readiness scorer.

clamp:            bound a value into [low, high]
is_finite_number: True for real, finite int/float (bool excluded)
round_half_up:    browser-style rounding (2.5 -> 3), not banker's rounding
"""

from __future__ import annotations

import math


def is_finite_number(value) -> bool:
    """Return True when *value* is an int/float that is neither NaN nor infinite."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return math.isfinite(value)


def clamp(value: float, low: float, high: float) -> float:
    """Bound *value* into ``[low, high]``."""
    return max(low, min(value, high))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, ties toward positive infinity.

    Python's built-in ``round`` uses banker's rounding (``round(2.5) == 2``),
    which would shift readiness scores and drag positions sitting exactly on
    a .5 boundary.
    """
    return int(math.floor(value + 0.5))
