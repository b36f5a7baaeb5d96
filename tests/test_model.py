import math
from dataclasses import replace

import pytest

from kumiko.builtin_patterns import BUILT_IN_PATTERNS, EMPTY_PATTERN_ID, create_empty_pattern, duplicate_pattern
from kumiko.model import (
    ArcSegment,
    CellConfig,
    CornerToCenterConfig,
    EdgeParallelConfig,
    Panel,
    Pattern,
    parse_cell_key,
)
from kumiko.repository import PatternRepository


def test_builtin_catalogue():
    assert list(BUILT_IN_PATTERNS) == [
        EMPTY_PATTERN_ID,
        "builtin-asanoha",
        "builtin-goma",
        "builtin-sakura",
        "builtin-shippo",
    ]
    assert all(p.is_built_in for p in BUILT_IN_PATTERNS.values())
    assert BUILT_IN_PATTERNS[EMPTY_PATTERN_ID].is_empty()

    sakura = BUILT_IN_PATTERNS["builtin-sakura"]
    assert sakura.edge_parallel["BC"].is_blocker
    assert sakura.corner_to_center["A"].blocked_by == "edgeParallel"
    assert sakura.corner_to_center["A"].start_side == "center"


def test_pattern_accepts_camel_case_records():
    record = {
        "id": "user-1",
        "name": "Mine",
        "isBuiltIn": False,
        "baseWeight": 1.2,
        "cornerToCenter": {"A": {"weightMultiplier": 2, "blockedBy": "edgeParallel", "startSide": "center"}},
        "edgeParallel": {"BC": {"positionMode": "from-corner", "distance": 3, "isBlocker": True}},
        "cornerArcs": {"AB": {"radius": 9}},
    }
    pattern = Pattern.from_dict(record)

    assert pattern.base_weight == 1.2
    assert pattern.corner_to_center["A"] == CornerToCenterConfig(2.0, "edgeParallel", "center")
    assert pattern.corner_to_center["B"] is None
    assert pattern.edge_parallel["BC"] == EdgeParallelConfig("from-corner", 3.0, 1.0, True)
    assert pattern.corner_arcs["AB"].radius == 9.0
    assert Pattern.from_dict(pattern.to_dict()) == pattern


def test_pattern_rejects_bad_slots():
    with pytest.raises(ValueError):
        Pattern(id="x", corner_to_center={"D": None})
    with pytest.raises(ValueError):
        Pattern(id="x", edge_parallel={"AB": {"position_mode": "sideways"}})
    with pytest.raises(ValueError):
        CornerToCenterConfig(start_side="middle")
    with pytest.raises(ValueError):
        Pattern.from_dict({"name": "no id"})


def test_new_and_duplicated_patterns_are_user_owned():
    empty = create_empty_pattern("p1", "Blank")
    assert empty.is_empty() and not empty.is_built_in
    assert empty.created == empty.modified > 0

    copy = duplicate_pattern(BUILT_IN_PATTERNS["builtin-asanoha"], "p2")
    assert copy.id == "p2"
    assert copy.name == "Asanoha (copy)"
    assert not copy.is_built_in
    assert copy.corner_to_center == BUILT_IN_PATTERNS["builtin-asanoha"].corner_to_center
    assert copy.corner_to_center is not BUILT_IN_PATTERNS["builtin-asanoha"].corner_to_center


def test_cell_config_and_keys():
    with pytest.raises(ValueError):
        CellConfig("builtin-goma", rotation=90)
    assert parse_cell_key("3,7") == (3, 7)
    for bad in ("3", "a,b", "-1,2", "1,2,3"):
        with pytest.raises(ValueError):
            parse_cell_key(bad)


def test_panel_normalises_cells():
    panel = Panel.from_dict(
        {
            "id": "p",
            "widthMm": 50,
            "defaultPatternId": "builtin-goma",
            "cells": {"2,3": {"patternId": "builtin-shippo", "rotation": 240}},
        }
    )
    assert panel.width_mm == 50.0
    assert panel.cell_config(2, 3) == CellConfig("builtin-shippo", 240)
    assert panel.cell_config(0, 0) is None
    assert Panel.from_dict(panel.to_dict()) == panel

    with pytest.raises(ValueError):
        Panel.from_dict({"id": "p", "width_mm": 0})


def test_builtin_slot_maps_are_read_only():
    pattern = PatternRepository().get("builtin-asanoha")
    with pytest.raises(TypeError):
        pattern.corner_to_center["A"] = None
    with pytest.raises(TypeError):
        pattern.edge_parallel["AB"] = EdgeParallelConfig()
    assert BUILT_IN_PATTERNS["builtin-asanoha"].corner_to_center["A"] is not None


def test_panel_cells_are_read_only():
    panel = Panel(id="p", default_pattern_id=EMPTY_PATTERN_ID, cells={"0,0": CellConfig("builtin-goma")})
    with pytest.raises(TypeError):
        panel.cells["0,1"] = CellConfig("builtin-goma")
    assert list(panel.cells) == ["0,0"]


def test_records_are_hashable():
    assert len(set(BUILT_IN_PATTERNS.values())) == len(BUILT_IN_PATTERNS)
    empty = BUILT_IN_PATTERNS[EMPTY_PATTERN_ID]
    assert hash(empty) == hash(replace(empty))

    panel = Panel(id="p", default_pattern_id=EMPTY_PATTERN_ID)
    assert {panel, Panel.from_dict(panel.to_dict())} == {panel}


def test_panel_validates_on_construction():
    with pytest.raises(ValueError):
        Panel(id="p", width_mm=10.0, height_mm=10.0, triangle_size_mm=0.0, default_pattern_id=EMPTY_PATTERN_ID)
    with pytest.raises(ValueError):
        Panel(id="p", height_mm=-5.0)
    with pytest.raises(ValueError):
        Panel(id="p", stl_depth_mm=-1.0)


def test_arc_sweep_takes_minor_arc():
    arc = ArcSegment(center=(0.0, 0.0), radius=2.0, start_angle=3.0, end_angle=-3.0, weight=0.8)
    assert math.isclose(arc.sweep(), 2 * math.pi - 6.0)
    assert math.isclose(arc.start_point()[0], 2.0 * math.cos(3.0))

    reverse = ArcSegment(center=(0.0, 0.0), radius=2.0, start_angle=-3.0, end_angle=3.0, weight=0.8)
    assert reverse.sweep() < 0
    assert reverse.to_dict()["sweep"] == reverse.sweep()
