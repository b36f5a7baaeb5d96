import json

import pytest

from kumiko import parameters
from kumiko.parameters import KumikoParameters


def test_cli_overrides():
    overrides, cli = parameters.parse_cli_overrides(
        [
            "--size",
            "200",
            "120",
            "--triangle-size",
            "25",
            "--pattern",
            "builtin-goma",
            "--edge-parallel-mode",
            "line",
            "--cell",
            "1,2=builtin-shippo@120",
            "--cell",
            "0,0=builtin-sakura",
            "--skip-export",
        ]
    )

    assert overrides["width_mm"] == 200.0
    assert overrides["height_mm"] == 120.0
    assert overrides["triangle_size_mm"] == 25.0
    assert overrides["default_pattern_id"] == "builtin-goma"
    assert overrides["edge_parallel_mode"] == "line"
    assert overrides["cells"] == {
        "1,2": {"pattern_id": "builtin-shippo", "rotation": 120},
        "0,0": {"pattern_id": "builtin-sakura", "rotation": 0},
    }
    assert cli.skip_export is True
    assert cli.out_dir == "exports"


def test_bad_cell_argument():
    with pytest.raises(ValueError):
        parameters.parse_cli_overrides(["--cell", "1,2"])


def test_json_sections_are_flattened(tmp_path):
    config = tmp_path / "panel.json"
    config.write_text(
        json.dumps(
            {
                "panel": {"width_mm": 80, "height_mm": 40, "cells": {"0,1": {"pattern_id": "builtin-goma"}}},
                "rendering": {"edge_parallel_mode": "line"},
                "colour": "oak",
            }
        )
    )
    params = parameters.load_parameters(config, {"cells": {"2,2": {"pattern_id": "builtin-shippo", "rotation": 240}}})

    assert params.width_mm == 80
    assert params.height_mm == 40
    assert not params.edge_parallel_as_polygon
    assert set(params.cells) == {"0,1", "2,2"}
    panel = params.to_panel()
    assert panel.cell_config(2, 2).rotation == 240
    assert panel.default_pattern_id == "builtin-asanoha"


def test_cli_overrides_take_precedence(tmp_path):
    config = tmp_path / "panel.json"
    config.write_text(json.dumps({"triangle_size_mm": 30, "default_pattern_id": "builtin-goma"}))
    params = parameters.load_parameters(config, {"triangle_size_mm": 12.5})

    assert params.triangle_size_mm == 12.5
    assert params.default_pattern_id == "builtin-goma"


def test_validation():
    with pytest.raises(ValueError):
        KumikoParameters.from_dict({"edge_parallel_mode": "dashed"})
    with pytest.raises(ValueError):
        KumikoParameters.from_dict({"width_mm": 0})
    with pytest.raises(ValueError):
        KumikoParameters.from_dict({"cells": {"0,0": {"pattern_id": "x", "rotation": 45}}})
    with pytest.raises(KeyError):
        parameters.apply_overrides(KumikoParameters(), {"radius_m": 3})
    with pytest.raises(FileNotFoundError):
        parameters.load_json_config("does-not-exist.json")


def test_json_config_must_be_an_object(tmp_path):
    assert parameters.load_json_config(None) == {}
    path = tmp_path / "list.json"
    path.write_text(json.dumps([1, 2]), encoding="utf-8")
    with pytest.raises(ValueError):
        parameters.load_json_config(path)

    merged = parameters.apply_overrides(KumikoParameters(), {"width_mm": 40.0})
    assert merged.width_mm == 40.0
    with pytest.raises(ValueError):
        parameters.apply_overrides(KumikoParameters(), {"width_mm": -1.0})


def test_user_patterns_from_config():
    params = KumikoParameters.from_dict(
        {
            "default_pattern_id": "mine",
            "patterns": [{"id": "mine", "cornerArcs": {"AB": {"radius": 4}}}],
        }
    )
    (pattern,) = params.user_patterns()
    assert pattern.id == "mine"
    assert pattern.corner_arcs["AB"].radius == 4.0
