"""
core.domain.numbers — Rounding shared by every reward formula.

Python's ``round()`` rounds halves to even (``round(12.5) == 12``).  NP
amounts shown to players round halves up, so reward curves, risk
multipliers and anti-farm penalties all go through ``round_half_up``.
"""

from __future__ import annotations

import math


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return int(math.floor(value + 0.5))


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))
