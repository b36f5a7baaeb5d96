"""Panel compositor: tile patterns over a rectangular panel.

For each grid cell touching the panel the cell's pattern (override or panel
default) and rotation are resolved, the pattern is compiled for that cell,
and everything is clipped to the panel rectangle ``[0, width] x [0, height]``.
Triangle edges are added once per shared edge.

Usage::

    from kumiko.panel import generate_panel_geometry

    report = {}
    segments = generate_panel_geometry(panel, repository, report=report)
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Mapping, NamedTuple, Optional, Set, Union

from .clipping import clip_line_to_rect, clip_polygon_to_rect, triangle_intersects_rect
from .model import ArcSegment, LineSegment, Panel, Pattern, Polygon, RenderedSegments
from .segments import generate_pattern_segments, generate_triangle_edges
from .triangle import (
    Triangle,
    calculate_grid_dimensions,
    get_triangle_for_cell,
    make_triangle,
    triangle_height,
)
from .vec2 import Point

__all__ = [
    "EDGE_KEY_DECIMALS",
    "ARC_BOUNDS_MARGIN_MM",
    "TrianglePreview",
    "TiledPreview",
    "edge_key",
    "generate_panel_geometry",
    "generate_triangle_preview",
    "generate_tiled_preview",
]

log = logging.getLogger(__name__)

# Edge endpoints are rounded to this many decimals before deduplication so
# rotation/intersection noise does not split one shared edge into two.
EDGE_KEY_DECIMALS = 4

# Arcs are not clipped; one is kept when its centre lies within
# ``radius + ARC_BOUNDS_MARGIN_MM`` of the panel.
ARC_BOUNDS_MARGIN_MM = 10.0

PatternSource = Union[Mapping[str, Pattern], Iterable[Pattern]]


class TrianglePreview(NamedTuple):
    triangle: Triangle
    segments: RenderedSegments
    edges: List[LineSegment]


class TiledPreview(NamedTuple):
    triangles: List[Triangle]
    segments: RenderedSegments
    edges: List[LineSegment]


def edge_key(p1: Point, p2: Point) -> str:
    """Order-independent key for the edge between *p1* and *p2*."""
    k1 = f"{p1[0]:.{EDGE_KEY_DECIMALS}f},{p1[1]:.{EDGE_KEY_DECIMALS}f}"
    k2 = f"{p2[0]:.{EDGE_KEY_DECIMALS}f},{p2[1]:.{EDGE_KEY_DECIMALS}f}"
    return f"{k1}-{k2}" if k1 < k2 else f"{k2}-{k1}"


def _index_patterns(patterns: PatternSource) -> Dict[str, Pattern]:
    if isinstance(patterns, Mapping):
        return dict(patterns)
    return {p.id: p for p in patterns}


def generate_panel_geometry(
    panel: Panel,
    patterns: PatternSource,
    edge_parallel_as_polygon: bool = True,
    report: Optional[Dict[str, Any]] = None,
) -> RenderedSegments:
    """Return all clipped geometry for *panel*.

    *patterns* is anything iterable over ``Pattern`` (a list, a
    ``PatternRepository``) or an id-keyed mapping. Missing references never
    raise: a missing default pattern yields an empty result, a missing cell
    pattern falls back to the default. Both are logged and, when *report* is
    given, recorded there under ``missing_default_pattern`` and
    ``missing_patterns``.
    """

    by_id = _index_patterns(patterns)
    result = RenderedSegments()
    if report is not None:
        report.setdefault("missing_default_pattern", None)
        report.setdefault("missing_patterns", [])
        report.setdefault("cells_rendered", 0)
        report.setdefault("cells_skipped", 0)

    default_pattern = by_id.get(panel.default_pattern_id)
    if default_pattern is None:
        log.warning("Default pattern not found: %s", panel.default_pattern_id)
        if report is not None:
            report["missing_default_pattern"] = panel.default_pattern_id
        return result

    width, height = panel.width_mm, panel.height_mm
    rows, cols = calculate_grid_dimensions(width, height, panel.triangle_size_mm)
    if report is not None:
        report["grid"] = {"rows": rows, "cols": cols}

    drawn_edges: Set[str] = set()
    missing: Set[str] = set()

    for row in range(rows):
        for col in range(cols):
            tri = get_triangle_for_cell(row, col, panel.triangle_size_mm)
            if not triangle_intersects_rect(tri, 0, 0, width, height):
                if report is not None:
                    report["cells_skipped"] += 1
                continue

            cell = panel.cell_config(row, col)
            pattern = default_pattern
            rotation = 0
            if cell is not None:
                rotation = cell.rotation
                found = by_id.get(cell.pattern_id)
                if found is not None:
                    pattern = found
                elif cell.pattern_id not in missing:
                    missing.add(cell.pattern_id)
                    log.warning(
                        "Pattern %s for cell %d,%d not found; using default %s",
                        cell.pattern_id,
                        row,
                        col,
                        default_pattern.id,
                    )

            segments = generate_pattern_segments(pattern, tri, rotation, edge_parallel_as_polygon)
            _clip_into(segments, result, width, height)

            for edge in generate_triangle_edges(tri, pattern.base_weight):
                key = edge_key(edge.start, edge.end)
                if key in drawn_edges:
                    continue
                drawn_edges.add(key)
                clipped = clip_line_to_rect(edge.start, edge.end, 0, 0, width, height)
                if clipped is not None:
                    result.lines.append(LineSegment(start=clipped[0], end=clipped[1], weight=edge.weight))

            if report is not None:
                report["cells_rendered"] += 1

    if report is not None:
        report["missing_patterns"] = sorted(set(report["missing_patterns"]) | missing)
    return result


def _clip_into(segments: RenderedSegments, result: RenderedSegments, width: float, height: float) -> None:
    for line in segments.lines:
        clipped = clip_line_to_rect(line.start, line.end, 0, 0, width, height)
        if clipped is None:
            continue
        start, end = clipped
        result.lines.append(
            LineSegment(
                start=start,
                end=end,
                weight=line.weight,
                # A clipped end now meets the panel border, not its old neighbour.
                start_intersect_weight=line.start_intersect_weight if start == line.start else None,
                end_intersect_weight=line.end_intersect_weight if end == line.end else None,
            )
        )

    for poly in segments.polygons:
        clipped_points = clip_polygon_to_rect(poly.points, 0, 0, width, height)
        if len(clipped_points) >= 3:
            result.polygons.append(Polygon(points=clipped_points, weight=poly.weight))

    for arc in segments.arcs:
        if _arc_near_rect(arc, width, height):
            result.arcs.append(arc)


def _arc_near_rect(arc: ArcSegment, width: float, height: float) -> bool:
    margin = arc.radius + ARC_BOUNDS_MARGIN_MM
    cx, cy = arc.center
    return -margin <= cx <= width + margin and -margin <= cy <= height + margin


def generate_triangle_preview(
    pattern: Pattern,
    triangle_size: float,
    rotation: float = 0,
    edge_parallel_as_polygon: bool = True,
) -> TrianglePreview:
    """Single up-pointing triangle with its apex at ``(size/2, 0)``."""
    h = triangle_height(triangle_size)
    tri = make_triangle(
        Point(triangle_size / 2, 0.0),
        Point(0.0, h),
        Point(triangle_size, h),
        is_up_pointing=True,
    )
    segments = generate_pattern_segments(pattern, tri, rotation, edge_parallel_as_polygon)
    edges = generate_triangle_edges(tri, pattern.base_weight)
    return TrianglePreview(triangle=tri, segments=segments, edges=edges)


def generate_tiled_preview(
    pattern: Pattern,
    triangle_size: float,
    rows: int = 3,
    cols: int = 4,
    edge_parallel_as_polygon: bool = True,
) -> TiledPreview:
    """Small unclipped grid showing how *pattern* tiles."""
    triangles: List[Triangle] = []
    segments = RenderedSegments()
    edges: List[LineSegment] = []
    drawn: Set[str] = set()

    for row in range(rows):
        for col in range(cols):
            tri = get_triangle_for_cell(row, col, triangle_size)
            triangles.append(tri)
            segments.extend(generate_pattern_segments(pattern, tri, 0, edge_parallel_as_polygon))
            for edge in generate_triangle_edges(tri, pattern.base_weight):
                key = edge_key(edge.start, edge.end)
                if key not in drawn:
                    drawn.add(key)
                    edges.append(edge)

    return TiledPreview(triangles=triangles, segments=segments, edges=edges)
