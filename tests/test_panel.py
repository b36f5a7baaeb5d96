import math
from dataclasses import replace

import pytest

from kumiko.builtin_patterns import EMPTY_PATTERN_ID, builtin_patterns
from kumiko.model import CellConfig, CornerToCenterConfig, Panel, Pattern
from kumiko.panel import (
    edge_key,
    generate_panel_geometry,
    generate_tiled_preview,
    generate_triangle_preview,
)
from kumiko.repository import PatternRepository
from kumiko.vec2 import Point


def _panel(**kwargs):
    data = dict(id="p", width_mm=10.0, height_mm=10.0, triangle_size_mm=10.0, default_pattern_id="builtin-asanoha")
    data.update(kwargs)
    return Panel(**data)


def test_missing_default_pattern_yields_empty_result():
    report = {}
    result = generate_panel_geometry(_panel(default_pattern_id="gone"), builtin_patterns(), report=report)

    assert result.is_empty()
    assert report["missing_default_pattern"] == "gone"
    assert report["cells_rendered"] == 0


def test_zero_triangle_size_is_rejected_before_layout():
    with pytest.raises(ValueError):
        _panel(triangle_size_mm=0.0)
    with pytest.raises(ValueError):
        replace(_panel(), triangle_size_mm=0.0)


def test_missing_cell_pattern_falls_back_to_default():
    report = {}
    plain = generate_panel_geometry(_panel(), builtin_patterns())
    overridden = generate_panel_geometry(
        _panel(cells={"0,0": CellConfig("nope"), "1,1": CellConfig("nope")}),
        builtin_patterns(),
        report=report,
    )

    assert report["missing_patterns"] == ["nope"]
    assert report["missing_default_pattern"] is None
    assert overridden.to_dict() == plain.to_dict()


def test_off_panel_cells_are_skipped():
    report = {}
    generate_panel_geometry(_panel(), PatternRepository(), report=report)

    assert report["grid"] == {"rows": 3, "cols": 3}
    assert report["cells_rendered"] == 6
    assert report["cells_skipped"] == 3


def test_cell_override_changes_geometry(builtins):
    panel = _panel(default_pattern_id=EMPTY_PATTERN_ID, cells={"0,0": CellConfig("builtin-shippo")})
    result = generate_panel_geometry(panel, builtins)

    assert len(result.arcs) == 3
    assert result.polygons == []


def test_shared_edges_are_drawn_once():
    panel = _panel(width_mm=40.0, height_mm=30.0, default_pattern_id=EMPTY_PATTERN_ID)
    report = {}
    result = generate_panel_geometry(panel, builtin_patterns(), report=report)

    # Each cell brings three edges, but neighbours share most of them.
    assert 0 < len(result.lines) < 3 * report["cells_rendered"]


def test_everything_is_clipped_to_the_panel(builtins):
    width, height = 47.0, 31.0
    for pattern in builtins.values():
        panel = _panel(width_mm=width, height_mm=height, triangle_size_mm=12.0, default_pattern_id=pattern.id)
        for as_polygon in (True, False):
            result = generate_panel_geometry(panel, builtins, edge_parallel_as_polygon=as_polygon)
            points = [p for line in result.lines for p in (line.start, line.end)]
            points += [p for poly in result.polygons for p in poly.points]
            assert points
            for x, y in points:
                assert -1e-9 <= x <= width + 1e-9
                assert -1e-9 <= y <= height + 1e-9
            assert all(len(poly.points) >= 3 for poly in result.polygons)


def _on_border(point, width, height):
    x, y = point
    return x in (0.0, width) or y in (0.0, height)


def test_clipped_line_ends_drop_intersect_weight(builtins):
    panel = _panel(width_mm=12.0, height_mm=12.0, triangle_size_mm=10.0)
    result = generate_panel_geometry(panel, builtins)
    corner_lines = [
        line for line in result.lines
        if line.start_intersect_weight is not None or line.end_intersect_weight is not None
    ]
    clipped = [line for line in corner_lines if line.end_intersect_weight is None]

    assert clipped
    for line in clipped:
        assert _on_border(line.end, 12.0, 12.0)


def test_rotation_is_applied_per_cell(builtins):
    one_line = Pattern(id="one-line", corner_to_center={"A": CornerToCenterConfig()})
    patterns = list(builtins.values()) + [one_line]
    straight = _panel(default_pattern_id=EMPTY_PATTERN_ID, width_mm=30.0, height_mm=20.0,
                      cells={"0,0": CellConfig("one-line")})
    rotated = _panel(default_pattern_id=EMPTY_PATTERN_ID, width_mm=30.0, height_mm=20.0,
                     cells={"0,0": CellConfig("one-line", 120)})

    a = generate_panel_geometry(straight, patterns)
    b = generate_panel_geometry(rotated, patterns)
    assert a.summary() == b.summary()
    assert a.to_dict() != b.to_dict()


def test_edge_key_is_order_independent():
    p1, p2 = Point(1.00001, 2.0), Point(3.0, 4.0)
    assert edge_key(p1, p2) == edge_key(p2, p1)
    assert edge_key(Point(1.000001, 2.0), p2) == edge_key(Point(1.0, 2.0), p2)
    assert edge_key(p1, p2) != edge_key(p1, Point(3.0, 4.1))


def test_triangle_preview(builtins):
    preview = generate_triangle_preview(builtins["builtin-asanoha"], 15.0)

    assert preview.triangle.a == Point(7.5, 0.0)
    assert preview.triangle.is_up_pointing
    assert len(preview.segments.lines) == 3
    assert len(preview.edges) == 3
    for line in preview.segments.lines:
        assert line.end == preview.triangle.centroid


def test_tiled_preview_shares_edges(builtins):
    preview = generate_tiled_preview(builtins[EMPTY_PATTERN_ID], 10.0, rows=1, cols=2)
    assert len(preview.triangles) == 2
    assert len(preview.edges) == 5
    assert preview.segments.is_empty()

    grid = generate_tiled_preview(builtins["builtin-asanoha"], 10.0)
    assert len(grid.triangles) == 12
    assert len(grid.segments.lines) == 36
    assert math.isclose(grid.triangles[-1].b.x, 15.0)
