"""Unit conversion helpers for RTF measurements."""
from __future__ import annotations

HALF_POINTS_PER_POINT = 2


def half_points_to_points(value: int) -> float:
    """Convert an RTF ``\\fs`` value (half-points) to points."""
    return value / HALF_POINTS_PER_POINT


def points_to_half_points(value: float) -> int:
    """Convert points to the half-point integer RTF stores in ``\\fs``.

    Sizes between half-points are rounded to the nearest one.
    """
    return int(round(value * HALF_POINTS_PER_POINT))
