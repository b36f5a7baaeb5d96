"""2-component point/vector algebra helpers (pure Python).

Points and free vectors share one type, ``Point``; a direction is just the
difference of two points. Used by ``triangle.py``, ``clipping.py`` and
``segments.py`` so the same math is not repeated in every module.
"""

from __future__ import annotations

import math
from typing import NamedTuple

__all__ = [
    "Point",
    "ZERO",
    "add",
    "sub",
    "scale",
    "dot",
    "cross",
    "norm",
    "normalize",
    "perpendicular",
    "distance",
    "midpoint",
    "rotate_point",
    "is_zero",
]


class Point(NamedTuple):
    """2D coordinate in millimetres."""

    x: float
    y: float


ZERO = Point(0.0, 0.0)


def add(a: Point, b: Point) -> Point:
    return Point(a[0] + b[0], a[1] + b[1])


def sub(a: Point, b: Point) -> Point:
    """``a - b``."""
    return Point(a[0] - b[0], a[1] - b[1])


def scale(v: Point, s: float) -> Point:
    return Point(v[0] * s, v[1] * s)


def dot(a: Point, b: Point) -> float:
    return a[0] * b[0] + a[1] * b[1]


def cross(a: Point, b: Point) -> float:
    """z-component of the 3D cross product of ``a`` and ``b``."""
    return a[0] * b[1] - a[1] * b[0]


def norm(v: Point) -> float:
    """Euclidean length of *v*."""
    return math.sqrt(v[0] * v[0] + v[1] * v[1])


def normalize(v: Point) -> Point:
    """Unit vector in the direction of *v*, or (0,0) if *v* has zero length.

    Callers treat a zero result as an undefined direction.
    """
    n = norm(v)
    if n == 0:
        return ZERO
    return Point(v[0] / n, v[1] / n)


def perpendicular(v: Point) -> Point:
    """*v* rotated 90 degrees counter-clockwise."""
    return Point(-v[1], v[0])


def distance(a: Point, b: Point) -> float:
    dx = b[0] - a[0]
    dy = b[1] - a[1]
    return math.sqrt(dx * dx + dy * dy)


def midpoint(a: Point, b: Point) -> Point:
    return Point((a[0] + b[0]) / 2, (a[1] + b[1]) / 2)


def rotate_point(point: Point, origin: Point, angle: float) -> Point:
    """Rotate *point* about *origin* by *angle* radians."""
    c = math.cos(angle)
    s = math.sin(angle)
    dx = point[0] - origin[0]
    dy = point[1] - origin[1]
    return Point(origin[0] + dx * c - dy * s, origin[1] + dx * s + dy * c)


def is_zero(v: Point) -> bool:
    return v[0] == 0 and v[1] == 0
