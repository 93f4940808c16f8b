"""
Pure geometric utility functions.
No imports from the rest of the project, safe to use anywhere.
"""
from __future__ import annotations
from typing import Tuple

Point2D = Tuple[float, float]
Size2D = Tuple[int, int]


def clamp01(value: float) -> float:
    """Clamp a normalised coordinate into [0, 1]."""
    return max(0.0, min(1.0, float(value)))


def denormalize(point: Point2D, size: Size2D) -> Tuple[int, int]:
    """
    Map a normalised (x, y) in [0, 1] to pixel coordinates of a
    width × height surface. The far edge maps to the last pixel.
    """
    width, height = size
    x = round(clamp01(point[0]) * max(width - 1, 0))
    y = round(clamp01(point[1]) * max(height - 1, 0))
    return int(x), int(y)
