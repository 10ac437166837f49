"""Rounding helpers shared by the target and goal calculators."""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding toward +infinity.

    Python's built-in ``round`` uses banker's rounding (``round(2.5) == 2``);
    displayed targets round halves up instead (``round_half_up(2.5) == 3``,
    ``round_half_up(-2.5) == -2``).
    """
    return int(math.floor(value + 0.5))
