"""Configuration stack and parameter management for the panel generator.

Parameters are layered from lowest to highest precedence:

1. Defaults on ``KumikoParameters``.
2. JSON file: persistent project configuration. Keys may be flat or grouped
   into ``"panel"`` / ``"rendering"`` sections.
3. CLI overrides: runtime tweaks for automation/headless workflows.

The interface is pure Python and has no side effects beyond reading the
config file.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple
import json
import logging

from .model import ROTATIONS, CellConfig, Panel, Pattern, parse_cell_key

__all__ = [
    "EDGE_PARALLEL_MODES",
    "KumikoParameters",
    "load_json_config",
    "apply_overrides",
    "parse_cli_overrides",
    "load_parameters",
]

EDGE_PARALLEL_MODES = ("polygon", "line")

# Nested JSON sections are flattened into the top level.
_SECTIONS = ("panel", "rendering")


@dataclass(slots=True)
class KumikoParameters:
    """Canonical set of adjustable run parameters."""

    width_mm: float = 100.0
    height_mm: float = 100.0
    triangle_size_mm: float = 10.0  # Edge length of one cell
    stl_depth_mm: float = 3.0
    default_pattern_id: str = "builtin-asanoha"

    # Edge-parallel bands:
    # - 'polygon' (default): filled trapezoids clipped to the cell
    # - 'line': a single weighted centre line per band
    edge_parallel_mode: str = "polygon"

    # "row,col" -> {"pattern_id": ..., "rotation": 0|120|240}
    cells: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    # Extra user pattern records, in ``Pattern.to_dict`` form.
    patterns: List[Dict[str, Any]] = field(default_factory=list)

    def validate(self) -> None:
        if self.width_mm <= 0 or self.height_mm <= 0:
            raise ValueError("Panel dimensions must be positive")
        if self.triangle_size_mm <= 0:
            raise ValueError("Triangle size must be positive")
        if self.stl_depth_mm < 0:
            raise ValueError("STL depth cannot be negative")
        if not self.default_pattern_id:
            raise ValueError("A default pattern id is required")
        if self.edge_parallel_mode not in EDGE_PARALLEL_MODES:
            raise ValueError("edge_parallel_mode must be 'polygon' or 'line'")
        for key, cell in self.cells.items():
            parse_cell_key(key)
            if not isinstance(cell, Mapping) or "pattern_id" not in cell:
                raise ValueError(f"Cell {key!r} needs a pattern_id")
            if int(cell.get("rotation", 0)) not in ROTATIONS:
                raise ValueError(f"Cell {key!r} rotation must be one of {ROTATIONS}")
        for record in self.patterns:
            if not isinstance(record, Mapping) or "id" not in record:
                raise ValueError("Pattern records need an 'id'")

    @property
    def edge_parallel_as_polygon(self) -> bool:
        return self.edge_parallel_mode == "polygon"

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "KumikoParameters":
        flat: Dict[str, Any] = {}
        for key, value in data.items():
            if key in _SECTIONS and isinstance(value, Mapping):
                flat.update(value)
            else:
                flat[key] = value
        base = cls()
        known = set(asdict(base))
        unknown = sorted(set(flat) - known)
        if unknown:
            logging.info("Ignoring unknown config keys: %s", ", ".join(unknown))
        merged = {**asdict(base), **{k: v for k, v in flat.items() if k in known}}
        merged["cells"] = {str(k): dict(v) for k, v in (merged.get("cells") or {}).items()}
        merged["patterns"] = [dict(p) for p in merged.get("patterns") or []]
        params = cls(**merged)
        params.validate()
        return params

    def user_patterns(self) -> List[Pattern]:
        return [Pattern.from_dict(record) for record in self.patterns]

    def to_panel(self, panel_id: str = "panel", name: str = "Panel") -> Panel:
        cells = {key: CellConfig.from_dict(cell) for key, cell in self.cells.items()}
        return Panel(
            id=panel_id,
            name=name,
            width_mm=self.width_mm,
            height_mm=self.height_mm,
            triangle_size_mm=self.triangle_size_mm,
            stl_depth_mm=self.stl_depth_mm,
            default_pattern_id=self.default_pattern_id,
            cells=cells,
        )


def load_json_config(path: Path | str | None) -> Dict[str, Any]:
    """Read a panel config file into a plain dict.

    ``None`` means no file was configured and yields ``{}``. A missing file or a
    document whose top level is not an object is an error.
    """
    if path is None:
        return {}
    json_path = Path(path)
    if not json_path.exists():
        raise FileNotFoundError(f"Config file not found: {json_path}")
    data = json.loads(json_path.read_text(encoding="utf-8"))
    if not isinstance(data, Mapping):
        raise ValueError("Top-level JSON config must be an object")
    return dict(data)


def apply_overrides(base: KumikoParameters, overrides: Mapping[str, Any]) -> KumikoParameters:
    """Layer *overrides* on top of *base* and rebuild the parameter set.

    Keys must name existing parameters; the merged record is re-validated.
    """
    merged = base.to_dict()
    for key, value in overrides.items():
        if key not in merged:
            raise KeyError(f"Unknown parameter '{key}'")
        merged[key] = value
    return KumikoParameters.from_dict(merged)


def _parse_cell_arg(text: str) -> Tuple[str, Dict[str, Any]]:
    # ROW,COL=PATTERN_ID[@ROTATION]
    key, sep, rest = text.partition("=")
    if not sep or not rest:
        raise ValueError(f"Cell override must look like ROW,COL=PATTERN[@ROTATION], got {text!r}")
    pattern_id, _, rotation = rest.partition("@")
    row, col = parse_cell_key(key.strip())
    return Panel.cell_key(row, col), {
        "pattern_id": pattern_id.strip(),
        "rotation": int(rotation) if rotation else 0,
    }


def parse_cli_overrides(
    args: Optional[Iterable[str]] = None,
) -> Tuple[Dict[str, Any], Any]:
    """Parse CLI-style overrides using argparse conventions."""

    import argparse

    parser = argparse.ArgumentParser(description="Kumiko panel geometry generator")
    parser.add_argument("--config", type=str, help="Path to JSON config", default=None)
    parser.add_argument("--out-dir", type=str, default="exports", help="Export folder")
    parser.add_argument("--geometry-name", type=str, default="panel_geometry.json")
    parser.add_argument("--skip-export", action="store_true", help="Do not write the geometry JSON")
    parser.add_argument(
        "--size",
        type=float,
        nargs=2,
        metavar=("WIDTH", "HEIGHT"),
        help="Panel size in millimetres",
    )
    parser.add_argument("--triangle-size", type=float, help="Cell edge length in millimetres")
    parser.add_argument("--stl-depth", type=float, help="Panel depth in millimetres")
    parser.add_argument("--pattern", type=str, help="Default pattern id")
    parser.add_argument(
        "--edge-parallel-mode",
        type=str,
        choices=list(EDGE_PARALLEL_MODES),
        help="Render edge-parallel bands as filled polygons or centre lines",
    )
    parser.add_argument(
        "--cell",
        action="append",
        default=None,
        metavar="ROW,COL=PATTERN[@ROT]",
        help="Per-cell pattern override (repeatable)",
    )

    parsed, unknown = parser.parse_known_args(args=args)
    if unknown:
        logging.info("Ignoring unknown CLI args: %s", " ".join(unknown))
    overrides: Dict[str, Any] = {}
    if parsed.size is not None:
        overrides["width_mm"], overrides["height_mm"] = parsed.size
    if parsed.triangle_size is not None:
        overrides["triangle_size_mm"] = parsed.triangle_size
    if parsed.stl_depth is not None:
        overrides["stl_depth_mm"] = parsed.stl_depth
    if parsed.pattern is not None:
        overrides["default_pattern_id"] = parsed.pattern
    if parsed.edge_parallel_mode is not None:
        overrides["edge_parallel_mode"] = parsed.edge_parallel_mode
    if parsed.cell:
        overrides["cells"] = dict(_parse_cell_arg(text) for text in parsed.cell)

    return overrides, parsed


def load_parameters(
    config_path: Path | str | None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> KumikoParameters:
    """Load parameters using the JSON → CLI precedence chain.

    CLI cell overrides are merged on top of the configured cells.
    """

    data = load_json_config(config_path)
    params = KumikoParameters.from_dict(data)
    if cli_overrides:
        overrides = dict(cli_overrides)
        if "cells" in overrides:
            overrides["cells"] = {**params.cells, **overrides["cells"]}
        params = apply_overrides(params, overrides)
    return params
