"""Line intersection and polygon/line clipping.

Polygons are clipped with Sutherland-Hodgman against the half-planes of a
convex boundary (triangle or axis-aligned rectangle); lines are clipped to
rectangles with Cohen-Sutherland. A clip pass can return fewer than three
points, and callers discard such results.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from . import vec2
from .triangle import Triangle, point_in_triangle
from .vec2 import Point

__all__ = [
    "PARALLEL_TOLERANCE",
    "line_line_intersection",
    "segment_line_intersection",
    "clip_polygon_to_triangle",
    "clip_polygon_to_rect",
    "clip_line_to_rect",
    "line_intersects_rect",
    "triangle_intersects_rect",
]

# Cross products of direction vectors below this magnitude count as parallel.
PARALLEL_TOLERANCE = 1e-10

_INSIDE = 0
_LEFT = 1
_RIGHT = 2
_BOTTOM = 4
_TOP = 8


def line_line_intersection(p1: Point, p2: Point, p3: Point, p4: Point) -> Optional[Point]:
    """Intersection of the infinite lines p1-p2 and p3-p4, or ``None`` if parallel."""
    d1 = vec2.sub(p2, p1)
    d2 = vec2.sub(p4, p3)
    d3 = vec2.sub(p1, p3)
    denom = vec2.cross(d1, d2)
    if abs(denom) < PARALLEL_TOLERANCE:
        return None
    t = -vec2.cross(d3, d2) / denom
    return Point(p1[0] + t * d1[0], p1[1] + t * d1[1])


def segment_line_intersection(
    seg_start: Point,
    seg_end: Point,
    line_point: Point,
    line_dir: Point,
) -> Optional[Tuple[float, Point]]:
    """Intersect a segment with an infinite line given by point + direction.

    Returns ``(t, point)`` with ``t`` measured along the segment (0..1 lies
    within it), or ``None`` when the two are parallel.
    """
    d1 = vec2.sub(seg_end, seg_start)
    d3 = vec2.sub(seg_start, line_point)
    denom = vec2.cross(d1, line_dir)
    if abs(denom) < PARALLEL_TOLERANCE:
        return None
    t = -vec2.cross(d3, line_dir) / denom
    return t, Point(seg_start[0] + t * d1[0], seg_start[1] + t * d1[1])


def _line_side(start: Point, end: Point, p: Point) -> float:
    return (end[0] - start[0]) * (p[1] - start[1]) - (end[1] - start[1]) * (p[0] - start[0])


def _clip_against_edges(
    polygon: Sequence[Point],
    clip_edges: Sequence[Tuple[Point, Point]],
    inside_sign: float,
) -> List[Point]:
    output: List[Point] = [Point(*p) for p in polygon]
    for clip_start, clip_end in clip_edges:
        if not output:
            break
        source = output
        output = []
        count = len(source)
        for i in range(count):
            current = source[i]
            nxt = source[(i + 1) % count]
            current_inside = _line_side(clip_start, clip_end, current) * inside_sign >= 0
            next_inside = _line_side(clip_start, clip_end, nxt) * inside_sign >= 0
            if current_inside:
                output.append(current)
                if not next_inside:
                    hit = line_line_intersection(current, nxt, clip_start, clip_end)
                    if hit is not None:
                        output.append(hit)
            elif next_inside:
                hit = line_line_intersection(current, nxt, clip_start, clip_end)
                if hit is not None:
                    output.append(hit)
    return output


def clip_polygon_to_triangle(polygon: Sequence[Point], tri: Triangle) -> List[Point]:
    """Clip *polygon* to the interior of *tri*.

    Up- and down-pointing cells list their vertices in opposite windings, so
    the inside of each edge is taken from the side the third vertex lies on.
    A zero-area triangle clips everything away.
    """
    winding = _line_side(tri.a, tri.b, tri.c)
    if winding == 0:
        return []
    inside_sign = 1.0 if winding > 0 else -1.0
    return _clip_against_edges(polygon, list(tri.edges()), inside_sign)


def clip_polygon_to_rect(
    polygon: Sequence[Point],
    min_x: float,
    min_y: float,
    max_x: float,
    max_y: float,
) -> List[Point]:
    """Clip *polygon* to the rectangle ``[min_x, max_x] x [min_y, max_y]``."""
    clip_edges = [
        (Point(min_x, min_y), Point(max_x, min_y)),
        (Point(max_x, min_y), Point(max_x, max_y)),
        (Point(max_x, max_y), Point(min_x, max_y)),
        (Point(min_x, max_y), Point(min_x, min_y)),
    ]
    return _clip_against_edges(polygon, clip_edges, 1.0)


def clip_line_to_rect(
    start: Point,
    end: Point,
    min_x: float,
    min_y: float,
    max_x: float,
    max_y: float,
) -> Optional[Tuple[Point, Point]]:
    """Cohen-Sutherland clip of a segment; ``None`` when it lies fully outside."""

    def outcode(x: float, y: float) -> int:
        code = _INSIDE
        if x < min_x:
            code |= _LEFT
        elif x > max_x:
            code |= _RIGHT
        if y < min_y:
            code |= _BOTTOM
        elif y > max_y:
            code |= _TOP
        return code

    x0, y0 = start[0], start[1]
    x1, y1 = end[0], end[1]
    code0 = outcode(x0, y0)
    code1 = outcode(x1, y1)

    while True:
        if not (code0 | code1):
            return Point(x0, y0), Point(x1, y1)
        if code0 & code1:
            return None

        code_out = code0 if code0 else code1
        if code_out & _TOP:
            x = x0 + (x1 - x0) * (max_y - y0) / (y1 - y0)
            y = max_y
        elif code_out & _BOTTOM:
            x = x0 + (x1 - x0) * (min_y - y0) / (y1 - y0)
            y = min_y
        elif code_out & _RIGHT:
            y = y0 + (y1 - y0) * (max_x - x0) / (x1 - x0)
            x = max_x
        else:
            y = y0 + (y1 - y0) * (min_x - x0) / (x1 - x0)
            x = min_x

        if code_out == code0:
            x0, y0 = x, y
            code0 = outcode(x0, y0)
        else:
            x1, y1 = x, y
            code1 = outcode(x1, y1)


def _point_in_rect(p: Point, min_x: float, min_y: float, max_x: float, max_y: float) -> bool:
    return min_x <= p[0] <= max_x and min_y <= p[1] <= max_y


def line_intersects_rect(
    p1: Point,
    p2: Point,
    min_x: float,
    min_y: float,
    max_x: float,
    max_y: float,
) -> bool:
    if (p1[0] < min_x and p2[0] < min_x) or (p1[0] > max_x and p2[0] > max_x):
        return False
    if (p1[1] < min_y and p2[1] < min_y) or (p1[1] > max_y and p2[1] > max_y):
        return False
    if _point_in_rect(p1, min_x, min_y, max_x, max_y) or _point_in_rect(p2, min_x, min_y, max_x, max_y):
        return True
    return clip_line_to_rect(p1, p2, min_x, min_y, max_x, max_y) is not None


def triangle_intersects_rect(
    tri: Triangle,
    min_x: float,
    min_y: float,
    max_x: float,
    max_y: float,
) -> bool:
    """True when any part of *tri* touches the rectangle.

    Vertex-in-rect, rect-centre-in-triangle and edge crossings are OR'd so a
    triangle straddling a rectangle side with no vertex inside is still found.
    """
    if any(_point_in_rect(p, min_x, min_y, max_x, max_y) for p in tri.vertices):
        return True
    center = Point((min_x + max_x) / 2, (min_y + max_y) / 2)
    if point_in_triangle(center, tri):
        return True
    return any(
        line_intersects_rect(p1, p2, min_x, min_y, max_x, max_y) for p1, p2 in tri.edges()
    )
