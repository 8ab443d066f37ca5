from __future__ import annotations

import math

EPLEY_DIVISOR = 30


def _round_half_away_from_zero(value: float) -> int:
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def estimate_one_rep_max(weight: float, reps: int) -> int:
    """Estimated one-repetition max using the Epley formula.

    ``weight * (1 + reps / 30)`` rounded to the nearest integer, ties away
    from zero. ``reps == 0`` yields the weight itself. Inputs are assumed to
    have been validated already.
    """
    return _round_half_away_from_zero(weight * (1 + reps / EPLEY_DIVISOR))
