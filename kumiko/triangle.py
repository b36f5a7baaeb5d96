"""Triangle construction and lookup on the kumiko grid.

Grid layout::

    row 0:  /\\/\\/\\ ...    col 0 is up-pointing, col 1 down-pointing, ...
    row 1:  \\/\\/\\/ ...    rows alternate the starting orientation

Each column advances by half an edge, each row by one triangle height, so
neighbouring cells in a row overlap horizontally by half an edge and share
one full edge. Coordinates are millimetres with y growing downwards.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator, Literal, NamedTuple, Optional, Tuple

from . import vec2
from .vec2 import Point

__all__ = [
    "Corner",
    "Edge",
    "CORNERS",
    "EDGES",
    "Triangle",
    "GridDimensions",
    "CellIndex",
    "triangle_height",
    "centroid",
    "make_triangle",
    "rotate_triangle",
    "get_triangle_for_cell",
    "edge_vertices",
    "opposite_corner",
    "opposite_edge",
    "altitude_from_corner",
    "calculate_grid_dimensions",
    "point_in_triangle",
    "find_cell_at_point",
]

Corner = Literal["A", "B", "C"]
Edge = Literal["AB", "BC", "CA"]

CORNERS: Tuple[Corner, ...] = ("A", "B", "C")
EDGES: Tuple[Edge, ...] = ("AB", "BC", "CA")

_OPPOSITE_CORNER = {"BC": "A", "CA": "B", "AB": "C"}
_OPPOSITE_EDGE = {"A": "BC", "B": "CA", "C": "AB"}


@dataclass(frozen=True, slots=True)
class Triangle:
    """One kumiko cell. ``a`` is always the apex."""

    a: Point
    b: Point
    c: Point
    centroid: Point
    is_up_pointing: bool

    def corner(self, name: Corner) -> Point:
        if name == "A":
            return self.a
        if name == "B":
            return self.b
        if name == "C":
            return self.c
        raise KeyError(f"Unknown corner '{name}'")

    @property
    def vertices(self) -> Tuple[Point, Point, Point]:
        return (self.a, self.b, self.c)

    def edges(self) -> Iterator[Tuple[Point, Point]]:
        """Yield the AB, BC and CA edges as point pairs."""
        yield self.a, self.b
        yield self.b, self.c
        yield self.c, self.a


class GridDimensions(NamedTuple):
    rows: int
    cols: int


class CellIndex(NamedTuple):
    row: int
    col: int


def triangle_height(edge_length: float) -> float:
    """Height of an equilateral triangle with the given edge length."""
    return edge_length * (math.sqrt(3) / 2)


def centroid(a: Point, b: Point, c: Point) -> Point:
    return Point((a[0] + b[0] + c[0]) / 3, (a[1] + b[1] + c[1]) / 3)


def make_triangle(a: Point, b: Point, c: Point, is_up_pointing: bool = True) -> Triangle:
    """Build a triangle from three vertices, deriving the centroid."""
    a, b, c = Point(*a), Point(*b), Point(*c)
    return Triangle(a=a, b=b, c=c, centroid=centroid(a, b, c), is_up_pointing=is_up_pointing)


def rotate_triangle(tri: Triangle, degrees: float) -> Triangle:
    """Rotate the vertices about the centroid; the input is never modified.

    Centroid and orientation flag are carried over unchanged.
    """
    if degrees == 0:
        return tri
    angle = math.radians(degrees)
    c = tri.centroid
    return Triangle(
        a=vec2.rotate_point(tri.a, c, angle),
        b=vec2.rotate_point(tri.b, c, angle),
        c=vec2.rotate_point(tri.c, c, angle),
        centroid=c,
        is_up_pointing=tri.is_up_pointing,
    )


def get_triangle_for_cell(
    row: int,
    col: int,
    edge_length: float,
    origin_x: float = 0.0,
    origin_y: float = 0.0,
) -> Triangle:
    """Return the triangle occupying grid cell ``(row, col)``."""

    h = triangle_height(edge_length)
    half_edge = edge_length / 2
    is_up = (row + col) % 2 == 0
    base_x = origin_x + col * half_edge
    base_y = origin_y + row * h

    if is_up:
        a = Point(base_x + half_edge, base_y)
        b = Point(base_x, base_y + h)
        c = Point(base_x + edge_length, base_y + h)
    else:
        a = Point(base_x + half_edge, base_y + h)
        b = Point(base_x, base_y)
        c = Point(base_x + edge_length, base_y)
    return Triangle(a=a, b=b, c=c, centroid=centroid(a, b, c), is_up_pointing=is_up)


def edge_vertices(tri: Triangle, edge: Edge) -> Tuple[Point, Point]:
    if edge == "AB":
        return tri.a, tri.b
    if edge == "BC":
        return tri.b, tri.c
    if edge == "CA":
        return tri.c, tri.a
    raise KeyError(f"Unknown edge '{edge}'")


def opposite_corner(edge: Edge) -> Corner:
    return _OPPOSITE_CORNER[edge]  # type: ignore[return-value]


def opposite_edge(corner: Corner) -> Edge:
    return _OPPOSITE_EDGE[corner]  # type: ignore[return-value]


def altitude_from_corner(tri: Triangle, corner: Corner) -> float:
    """Perpendicular distance from *corner* to the line of its opposite edge.

    Returns 0.0 when the opposite edge has zero length.
    """
    p = tri.corner(corner)
    e1, e2 = edge_vertices(tri, opposite_edge(corner))
    edge_len = vec2.distance(e1, e2)
    if edge_len == 0:
        return 0.0
    return abs(vec2.cross(vec2.sub(e2, e1), vec2.sub(p, e1))) / edge_len


def calculate_grid_dimensions(
    panel_width_mm: float,
    panel_height_mm: float,
    triangle_size_mm: float,
) -> GridDimensions:
    """Rows/cols needed to cover a panel.

    The result over-covers on purpose; consumers must discard cells that fall
    outside the panel.
    """
    h = triangle_height(triangle_size_mm)
    half_edge = triangle_size_mm / 2
    cols = math.ceil(panel_width_mm / half_edge) + 1
    rows = math.ceil(panel_height_mm / h) + 1
    return GridDimensions(rows=rows, cols=cols)


def _sign(p1: Point, p2: Point, p3: Point) -> float:
    return (p1[0] - p3[0]) * (p2[1] - p3[1]) - (p2[0] - p3[0]) * (p1[1] - p3[1])


def point_in_triangle(p: Point, tri: Triangle) -> bool:
    """Boundary-inclusive point-in-triangle test."""
    d1 = _sign(p, tri.a, tri.b)
    d2 = _sign(p, tri.b, tri.c)
    d3 = _sign(p, tri.c, tri.a)
    has_neg = d1 < 0 or d2 < 0 or d3 < 0
    has_pos = d1 > 0 or d2 > 0 or d3 > 0
    return not (has_neg and has_pos)


def find_cell_at_point(
    point: Point,
    triangle_size_mm: float,
    origin_x: float = 0.0,
    origin_y: float = 0.0,
) -> Optional[CellIndex]:
    """Map a panel coordinate to the grid cell containing it.

    The inverse of the placement formulas is only an estimate because of the
    half-edge column stride, so the estimate and its eight neighbours are
    checked in turn.
    """
    h = triangle_height(triangle_size_mm)
    half_edge = triangle_size_mm / 2
    approx_row = math.floor((point[1] - origin_y) / h)
    approx_col = math.floor((point[0] - origin_x) / half_edge)

    for dr in (-1, 0, 1):
        for dc in (-1, 0, 1):
            row = approx_row + dr
            col = approx_col + dc
            if row < 0 or col < 0:
                continue
            tri = get_triangle_for_cell(row, col, triangle_size_mm, origin_x, origin_y)
            if point_in_triangle(point, tri):
                return CellIndex(row=row, col=col)
    return None
