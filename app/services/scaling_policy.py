from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal


def scale(service_points: int, service_max_points: int, exercise_max_points: int) -> float:
    """Map points reported on the grading service's scale onto the exercise's.

    Not clamped: a service reporting more than its own maximum yields more
    than the exercise maximum.  A non-positive service maximum yields 0.0.
    """
    if service_max_points > 0:
        return exercise_max_points * service_points / service_max_points
    return 0.0


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, ties away from zero (2.5 -> 3, -2.5 -> -3).

    Unlike the built-in round(), which rounds ties to even.  Works on the
    float's shortest repr, so 0.49999999999999994 stays below the tie.
    """
    return int(Decimal(repr(value)).quantize(Decimal(1), rounding=ROUND_HALF_UP))
