"""Pattern to geometry compiler.

``generate_pattern_segments`` turns a ``Pattern`` plus one (optionally
rotated) triangle into lines, arcs and filled polygons. Passes run in a fixed
order:

1. rotate the triangle about its centroid,
2. edge-parallel bands (these may act as blockers),
3. corner-to-center lines, truncated by blockers on the same corner,
4. corner arcs bulging towards the centroid.

Nothing here raises on bad geometry. A band that does not fit, a zero-length
edge, or a parallel intersection drops that one primitive; an arc radius
below half the chord is raised to the smallest valid value. Pattern values
come from user-dragged sliders and pass through invalid ranges all the time.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Dict, List, NamedTuple, Optional, Tuple

from . import vec2
from .clipping import clip_polygon_to_triangle, line_line_intersection, segment_line_intersection
from .model import (
    EDGE_PARALLEL_KEYS,
    ArcSegment,
    LineSegment,
    Pattern,
    Polygon,
    RenderedSegments,
)
from .triangle import (
    CORNERS,
    EDGES,
    Corner,
    Triangle,
    altitude_from_corner,
    edge_vertices,
    opposite_corner,
    rotate_triangle,
)
from .vec2 import Point

__all__ = [
    "ARC_RADIUS_EPSILON",
    "InwardArc",
    "generate_pattern_segments",
    "generate_triangle_edges",
    "calculate_inward_arc",
    "intersect_weight",
]

log = logging.getLogger(__name__)

# Added to half the chord when a configured arc radius is too small to span it.
ARC_RADIUS_EPSILON = 0.001


class InwardArc(NamedTuple):
    center: Point
    radius: float
    start_angle: float
    end_angle: float


@dataclass(slots=True)
class _Blocker:
    corner: Corner
    weight: float
    outer: Tuple[Point, Point]  # band side facing the corner
    inner: Tuple[Point, Point]  # band side facing the edge (and the centroid)


@dataclass(slots=True)
class _EdgeParallelResult:
    lines: List[LineSegment]
    polygons: List[Polygon]
    blockers: Dict[str, _Blocker]


def intersect_weight(weight: float, neighbor_weight: Optional[float]) -> Optional[float]:
    """Amount to pull a stroke end back where it meets a stroke of *neighbor_weight*."""
    if neighbor_weight is None:
        return None
    return max(0.0, (weight - neighbor_weight) / 2)


def generate_pattern_segments(
    pattern: Pattern,
    triangle: Triangle,
    rotation: float = 0,
    edge_parallel_as_polygon: bool = True,
) -> RenderedSegments:
    """Compile *pattern* for *triangle* rotated by *rotation* degrees.

    Edge-parallel bands are emitted as filled trapezoids by default, or as
    single weighted lines with ``edge_parallel_as_polygon=False``. The output
    depends only on the arguments.
    """

    tri = rotate_triangle(triangle, rotation)
    result = RenderedSegments()

    edge_parallel = _edge_parallel_segments(pattern, tri, edge_parallel_as_polygon)
    result.polygons.extend(edge_parallel.polygons)
    result.lines.extend(edge_parallel.lines)

    result.lines.extend(_corner_to_center_segments(pattern, tri, edge_parallel.blockers))
    result.arcs.extend(_corner_arcs(pattern, tri))
    return result


# ---------------------------------------------------------------------------
# Edge-parallel bands
# ---------------------------------------------------------------------------


def _edge_parallel_segments(pattern: Pattern, tri: Triangle, as_polygon: bool) -> _EdgeParallelResult:
    lines: List[LineSegment] = []
    polygons: List[Polygon] = []
    blockers: Dict[str, _Blocker] = {}

    for edge in EDGE_PARALLEL_KEYS:
        config = pattern.edge_parallel.get(edge)
        if config is None:
            continue

        near = opposite_corner(edge)  # type: ignore[arg-type]
        weight = pattern.base_weight * config.weight_multiplier
        e1, e2 = edge_vertices(tri, edge)  # type: ignore[arg-type]
        corner = tri.corner(near)

        edge_dir = vec2.normalize(vec2.sub(e2, e1))
        if vec2.is_zero(edge_dir):
            log.debug("Edge %s has zero length; skipping edge-parallel band", edge)
            continue
        mid = vec2.midpoint(e1, e2)

        perp = vec2.perpendicular(edge_dir)
        if vec2.dot(vec2.sub(corner, mid), perp) < 0:
            perp = vec2.scale(perp, -1)

        altitude = altitude_from_corner(tri, near)
        if config.position_mode == "from-corner":
            dist_from_edge = altitude - config.distance
        else:
            dist_from_edge = config.distance
        if dist_from_edge <= 0 or dist_from_edge >= altitude:
            log.debug(
                "Edge-parallel band on %s out of range (%.4f of %.4f mm); suppressed",
                edge,
                dist_from_edge,
                altitude,
            )
            continue

        through = vec2.add(mid, vec2.scale(perp, dist_from_edge))
        along = vec2.add(through, edge_dir)
        # Where the band's centre line meets the two edges adjacent to ``edge``.
        start = line_line_intersection(through, along, corner, e1)
        end = line_line_intersection(through, along, corner, e2)
        if start is None or end is None:
            continue

        half = weight / 2
        outer_offset = vec2.scale(perp, half)
        inner_offset = vec2.scale(perp, -half)

        if as_polygon:
            reach = vec2.scale(edge_dir, vec2.distance(e1, e2))
            far_back = vec2.sub(through, reach)
            far_fwd = vec2.add(through, reach)
            band = [
                vec2.add(far_back, outer_offset),
                vec2.add(far_fwd, outer_offset),
                vec2.add(far_fwd, inner_offset),
                vec2.add(far_back, inner_offset),
            ]
            clipped = clip_polygon_to_triangle(band, tri)
            if len(clipped) < 3:
                continue
            polygons.append(Polygon(points=clipped, weight=weight))
        else:
            edge_iw = intersect_weight(weight, pattern.base_weight)
            lines.append(
                LineSegment(
                    start=start,
                    end=end,
                    weight=weight,
                    start_intersect_weight=edge_iw,
                    end_intersect_weight=edge_iw,
                )
            )

        if config.is_blocker:
            blockers[near] = _Blocker(
                corner=near,
                weight=weight,
                outer=(vec2.add(start, outer_offset), vec2.add(end, outer_offset)),
                inner=(vec2.add(start, inner_offset), vec2.add(end, inner_offset)),
            )

    return _EdgeParallelResult(lines=lines, polygons=polygons, blockers=blockers)


# ---------------------------------------------------------------------------
# Corner-to-center lines
# ---------------------------------------------------------------------------


def _hit_between(start: Point, end: Point, line: Tuple[Point, Point]) -> Optional[Point]:
    """Point where *line* crosses the open segment start-end, if it does."""
    hit = segment_line_intersection(start, end, line[0], vec2.sub(line[1], line[0]))
    if hit is None:
        return None
    t, point = hit
    if not 0 < t < 1:
        return None
    return point


def _corner_to_center_segments(
    pattern: Pattern,
    tri: Triangle,
    blockers: Dict[str, _Blocker],
) -> List[LineSegment]:
    center = tri.centroid
    # corner -> (weight, start, end, start neighbour, blocker weight at a truncated end)
    traced: Dict[str, Tuple[float, Point, Point, Optional[float], Optional[float]]] = {}

    for corner in CORNERS:
        config = pattern.corner_to_center.get(corner)
        if config is None:
            continue

        weight = pattern.base_weight * config.weight_multiplier
        corner_point = tri.corner(corner)
        if vec2.distance(corner_point, center) == 0:
            continue

        start, end = corner_point, center
        start_neighbor: Optional[float] = pattern.base_weight
        end_blocker: Optional[float] = None

        blocker = blockers.get(corner) if config.blocked_by == "edgeParallel" else None
        if blocker is not None:
            if config.start_side == "center":
                hit = _hit_between(corner_point, center, blocker.inner)
                if hit is not None:
                    start = hit
                    start_neighbor = blocker.weight
            else:
                hit = _hit_between(corner_point, center, blocker.outer)
                if hit is not None:
                    end = hit
                    end_blocker = blocker.weight
            if hit is None:
                log.debug("Blocker on corner %s does not cross the center line; drawing full line", corner)

        traced[corner] = (weight, start, end, start_neighbor, end_blocker)

    # Only lines that still end on the centroid meet there.
    at_center = {corner: t[0] for corner, t in traced.items() if t[4] is None}
    lines: List[LineSegment] = []
    for corner, (weight, start, end, start_neighbor, end_blocker) in traced.items():
        if end_blocker is not None:
            end_neighbor: Optional[float] = end_blocker
        else:
            others = [w for k, w in at_center.items() if k != corner]
            end_neighbor = max(others) if others else None
        lines.append(
            LineSegment(
                start=start,
                end=end,
                weight=weight,
                start_intersect_weight=intersect_weight(weight, start_neighbor),
                end_intersect_weight=intersect_weight(weight, end_neighbor),
            )
        )
    return lines


# ---------------------------------------------------------------------------
# Corner arcs
# ---------------------------------------------------------------------------


def calculate_inward_arc(
    p1: Point,
    p2: Point,
    radius: float,
    bulge_toward: Point,
) -> Optional[InwardArc]:
    """Arc from *p1* to *p2* that bulges towards *bulge_toward*.

    An arc bulges away from its own centre, so of the two candidate centres
    the one farther from *bulge_toward* is used. Returns ``None`` when the
    two points coincide.
    """
    d = vec2.distance(p1, p2)
    if d == 0:
        return None
    half_chord = d / 2
    if radius < half_chord:
        radius = half_chord + ARC_RADIUS_EPSILON

    mid = vec2.midpoint(p1, p2)
    h = math.sqrt(max(0.0, radius * radius - half_chord * half_chord))
    perp = vec2.perpendicular(vec2.normalize(vec2.sub(p2, p1)))

    center1 = vec2.add(mid, vec2.scale(perp, h))
    center2 = vec2.add(mid, vec2.scale(perp, -h))
    if vec2.distance(center1, bulge_toward) > vec2.distance(center2, bulge_toward):
        center = center1
    else:
        center = center2

    return InwardArc(
        center=center,
        radius=radius,
        start_angle=math.atan2(p1[1] - center[1], p1[0] - center[0]),
        end_angle=math.atan2(p2[1] - center[1], p2[0] - center[0]),
    )


def _corner_arcs(pattern: Pattern, tri: Triangle) -> List[ArcSegment]:
    arcs: List[ArcSegment] = []
    for edge in EDGES:
        config = pattern.corner_arcs.get(edge)
        if config is None:
            continue
        p1, p2 = edge_vertices(tri, edge)
        arc = calculate_inward_arc(p1, p2, config.radius, tri.centroid)
        if arc is None:
            log.debug("Corner arc on %s has coincident corners; skipped", edge)
            continue
        arcs.append(
            ArcSegment(
                center=arc.center,
                radius=arc.radius,
                start_angle=arc.start_angle,
                end_angle=arc.end_angle,
                weight=pattern.base_weight * config.weight_multiplier,
            )
        )
    return arcs


def generate_triangle_edges(tri: Triangle, weight: float) -> List[LineSegment]:
    """The triangle's own AB, BC and CA edges."""
    return [LineSegment(start=p1, end=p2, weight=weight) for p1, p2 in tri.edges()]
