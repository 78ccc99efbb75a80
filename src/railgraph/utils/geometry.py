from __future__ import annotations

from typing import Tuple

import numpy as np

Point = Tuple[float, float]


def distance(a: Point, b: Point) -> float:
    """
    Straight-line distance between two planar points.
    """
    return float(np.hypot(b[0] - a[0], b[1] - a[1]))


def step_towards(origin: Point, target: Point, step: float) -> Tuple[Point, bool]:
    """
    Move ``step`` units from ``origin`` along the line to ``target``.

    Returns the new point and whether the target was reached. When the
    remaining distance is within ``step`` the result is exactly ``target``.
    """
    remaining = distance(origin, target)
    if remaining <= step:
        return (float(target[0]), float(target[1])), True

    direction = (np.asarray(target, dtype=float) - np.asarray(origin, dtype=float)) / remaining
    moved = np.asarray(origin, dtype=float) + direction * step
    return (float(moved[0]), float(moved[1])), False


def km_between(a: Point, b: Point, pixels_per_km: float) -> float:
    return distance(a, b) / pixels_per_km
