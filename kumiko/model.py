"""Pattern, panel and rendered-geometry records.

Pattern and panel records are immutable, including their slot and cell maps
(read-only ``MappingProxyType`` views); edits produce replacements with
``dataclasses.replace`` (see ``repository.py`` / ``commands.py``). The
``to_dict``/``from_dict`` pairs use snake_case keys and also accept the
camelCase keys used by browser-side pattern files.
"""

from __future__ import annotations

import math
import re
import time
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, List, Literal, Mapping, Optional, Tuple

from .triangle import CORNERS, EDGES
from .vec2 import Point

__all__ = [
    "Rotation",
    "ROTATIONS",
    "EDGE_PARALLEL_KEYS",
    "CornerToCenterConfig",
    "EdgeParallelConfig",
    "ArcConfig",
    "Pattern",
    "CellConfig",
    "Panel",
    "LineSegment",
    "ArcSegment",
    "Polygon",
    "RenderedSegments",
    "now_ms",
    "parse_cell_key",
]

Rotation = Literal[0, 120, 240]
ROTATIONS: Tuple[int, ...] = (0, 120, 240)

# Edge-parallel slots are keyed by the edge they run along; listed in the
# order of their near corners A, B, C.
EDGE_PARALLEL_KEYS: Tuple[str, ...] = ("BC", "CA", "AB")


def now_ms() -> int:
    return int(time.time() * 1000)


def _snake(key: str) -> str:
    return re.sub(r"(?<!^)(?=[A-Z])", "_", key).lower()


def _snake_keys(data: Mapping[str, Any]) -> Dict[str, Any]:
    return {_snake(str(k)): v for k, v in data.items()}


# ---------------------------------------------------------------------------
# Segment configuration
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CornerToCenterConfig:
    weight_multiplier: float = 1.0
    blocked_by: Optional[Literal["edgeParallel"]] = None
    start_side: Literal["corner", "center"] = "corner"

    def __post_init__(self) -> None:
        if self.blocked_by not in (None, "edgeParallel"):
            raise ValueError(f"blocked_by must be None or 'edgeParallel', got {self.blocked_by!r}")
        if self.start_side not in ("corner", "center"):
            raise ValueError(f"start_side must be 'corner' or 'center', got {self.start_side!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "weight_multiplier": self.weight_multiplier,
            "blocked_by": self.blocked_by,
            "start_side": self.start_side,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CornerToCenterConfig":
        d = _snake_keys(data)
        return cls(
            weight_multiplier=float(d.get("weight_multiplier", 1.0)),
            blocked_by=d.get("blocked_by"),
            start_side=d.get("start_side", "corner"),
        )


@dataclass(frozen=True, slots=True)
class EdgeParallelConfig:
    """A band running parallel to one edge.

    ``from-edge``: ``distance`` is measured from the edge towards the opposite
    corner. ``from-corner``: ``distance`` is measured from the corner towards
    the edge.
    """

    position_mode: Literal["from-edge", "from-corner"] = "from-edge"
    distance: float = 2.0  # mm
    weight_multiplier: float = 1.0
    is_blocker: bool = False

    def __post_init__(self) -> None:
        if self.position_mode not in ("from-edge", "from-corner"):
            raise ValueError(
                f"position_mode must be 'from-edge' or 'from-corner', got {self.position_mode!r}"
            )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "position_mode": self.position_mode,
            "distance": self.distance,
            "weight_multiplier": self.weight_multiplier,
            "is_blocker": self.is_blocker,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "EdgeParallelConfig":
        d = _snake_keys(data)
        return cls(
            position_mode=d.get("position_mode", "from-edge"),
            distance=float(d.get("distance", 2.0)),
            weight_multiplier=float(d.get("weight_multiplier", 1.0)),
            is_blocker=bool(d.get("is_blocker", False)),
        )


@dataclass(frozen=True, slots=True)
class ArcConfig:
    radius: float = 15.0  # mm; raised to half the chord when smaller
    weight_multiplier: float = 1.0

    def to_dict(self) -> Dict[str, Any]:
        return {"radius": self.radius, "weight_multiplier": self.weight_multiplier}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ArcConfig":
        d = _snake_keys(data)
        return cls(
            radius=float(d.get("radius", 15.0)),
            weight_multiplier=float(d.get("weight_multiplier", 1.0)),
        )


def _slots(keys: Tuple[str, ...], raw: Optional[Mapping[str, Any]], config_cls: Any) -> Mapping[str, Any]:
    raw = raw or {}
    unknown = set(raw) - set(keys)
    if unknown:
        raise ValueError(f"Unknown slot(s) {sorted(unknown)}; expected {list(keys)}")
    slots: Dict[str, Any] = {}
    for key in keys:
        value = raw.get(key)
        if value is None or isinstance(value, config_cls):
            slots[key] = value
        else:
            slots[key] = config_cls.from_dict(value)
    return MappingProxyType(slots)


def _slots_to_dict(slots: Mapping[str, Any]) -> Dict[str, Any]:
    return {k: (v.to_dict() if v is not None else None) for k, v in slots.items()}


# ---------------------------------------------------------------------------
# Pattern
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Pattern:
    """Declarative description of what to draw inside one triangle."""

    id: str
    name: str = "New Pattern"
    description: str = ""
    tags: Tuple[str, ...] = ()
    created: int = 0
    modified: int = 0
    is_built_in: bool = False
    base_weight: float = 0.8  # mm
    corner_to_center: Mapping[str, Optional[CornerToCenterConfig]] = field(
        default_factory=lambda: {k: None for k in CORNERS}
    )
    edge_parallel: Mapping[str, Optional[EdgeParallelConfig]] = field(
        default_factory=lambda: {k: None for k in EDGE_PARALLEL_KEYS}
    )
    corner_arcs: Mapping[str, Optional[ArcConfig]] = field(
        default_factory=lambda: {k: None for k in EDGES}
    )

    def __hash__(self) -> int:
        return hash((self.id, self.modified))

    def __post_init__(self) -> None:
        # Normalise slot maps so every key is present (frozen: go through object).
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(
            self, "corner_to_center", _slots(CORNERS, self.corner_to_center, CornerToCenterConfig)
        )
        object.__setattr__(
            self, "edge_parallel", _slots(EDGE_PARALLEL_KEYS, self.edge_parallel, EdgeParallelConfig)
        )
        object.__setattr__(self, "corner_arcs", _slots(EDGES, self.corner_arcs, ArcConfig))

    def is_empty(self) -> bool:
        """True when all nine slots are unset."""
        return not any(
            v is not None
            for slots in (self.corner_to_center, self.edge_parallel, self.corner_arcs)
            for v in slots.values()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "tags": list(self.tags),
            "created": self.created,
            "modified": self.modified,
            "is_built_in": self.is_built_in,
            "base_weight": self.base_weight,
            "corner_to_center": _slots_to_dict(self.corner_to_center),
            "edge_parallel": _slots_to_dict(self.edge_parallel),
            "corner_arcs": _slots_to_dict(self.corner_arcs),
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Pattern":
        d = _snake_keys(data)
        if "id" not in d:
            raise ValueError("Pattern record needs an 'id'")
        return cls(
            id=str(d["id"]),
            name=str(d.get("name", "New Pattern")),
            description=str(d.get("description", "")),
            tags=tuple(d.get("tags", ())),
            created=int(d.get("created", 0)),
            modified=int(d.get("modified", 0)),
            is_built_in=bool(d.get("is_built_in", False)),
            base_weight=float(d.get("base_weight", 0.8)),
            corner_to_center=d.get("corner_to_center"),
            edge_parallel=d.get("edge_parallel"),
            corner_arcs=d.get("corner_arcs"),
        )


# ---------------------------------------------------------------------------
# Panel
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class CellConfig:
    pattern_id: str
    rotation: int = 0

    def __post_init__(self) -> None:
        if self.rotation not in ROTATIONS:
            raise ValueError(f"Rotation must be one of {ROTATIONS}, got {self.rotation!r}")

    def to_dict(self) -> Dict[str, Any]:
        return {"pattern_id": self.pattern_id, "rotation": self.rotation}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "CellConfig":
        d = _snake_keys(data)
        return cls(pattern_id=str(d["pattern_id"]), rotation=int(d.get("rotation", 0)))


def parse_cell_key(key: str) -> Tuple[int, int]:
    parts = key.split(",")
    if len(parts) != 2:
        raise ValueError(f"Cell key must look like 'row,col', got {key!r}")
    try:
        row, col = int(parts[0]), int(parts[1])
    except ValueError:
        raise ValueError(f"Cell key must look like 'row,col', got {key!r}") from None
    if row < 0 or col < 0:
        raise ValueError(f"Cell indices cannot be negative: {key!r}")
    return row, col


@dataclass(frozen=True, slots=True)
class Panel:
    """A rectangular panel tiled with kumiko cells.

    ``cells`` only stores overrides of ``default_pattern_id``.
    """

    id: str
    name: str = "New Panel"
    created: int = 0
    modified: int = 0
    width_mm: float = 100.0
    height_mm: float = 100.0
    triangle_size_mm: float = 10.0
    stl_depth_mm: float = 3.0
    default_pattern_id: str = ""
    cells: Mapping[str, CellConfig] = field(default_factory=dict)

    def __post_init__(self) -> None:
        cells: Dict[str, CellConfig] = {}
        for key, value in dict(self.cells).items():
            row, col = parse_cell_key(key)
            cell = value if isinstance(value, CellConfig) else CellConfig.from_dict(value)
            cells[self.cell_key(row, col)] = cell
        object.__setattr__(self, "cells", MappingProxyType(cells))
        self.validate()

    def __hash__(self) -> int:
        return hash((self.id, self.modified))

    def validate(self) -> None:
        if self.width_mm <= 0 or self.height_mm <= 0:
            raise ValueError("Panel dimensions must be positive")
        if self.triangle_size_mm <= 0:
            raise ValueError("Triangle size must be positive")
        if self.stl_depth_mm < 0:
            raise ValueError("STL depth cannot be negative")

    @staticmethod
    def cell_key(row: int, col: int) -> str:
        return f"{row},{col}"

    def cell_config(self, row: int, col: int) -> Optional[CellConfig]:
        return self.cells.get(self.cell_key(row, col))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "created": self.created,
            "modified": self.modified,
            "width_mm": self.width_mm,
            "height_mm": self.height_mm,
            "triangle_size_mm": self.triangle_size_mm,
            "stl_depth_mm": self.stl_depth_mm,
            "default_pattern_id": self.default_pattern_id,
            "cells": {k: v.to_dict() for k, v in sorted(self.cells.items())},
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Panel":
        d = _snake_keys(data)
        if "id" not in d:
            raise ValueError("Panel record needs an 'id'")
        return cls(
            id=str(d["id"]),
            name=str(d.get("name", "New Panel")),
            created=int(d.get("created", 0)),
            modified=int(d.get("modified", 0)),
            width_mm=float(d.get("width_mm", 100.0)),
            height_mm=float(d.get("height_mm", 100.0)),
            triangle_size_mm=float(d.get("triangle_size_mm", 10.0)),
            stl_depth_mm=float(d.get("stl_depth_mm", 3.0)),
            default_pattern_id=str(d.get("default_pattern_id", "")),
            cells=dict(d.get("cells") or {}),
        )


# ---------------------------------------------------------------------------
# Rendered geometry
# ---------------------------------------------------------------------------


def _point_dict(p: Point) -> Dict[str, float]:
    return {"x": p[0], "y": p[1]}


@dataclass(slots=True)
class LineSegment:
    start: Point
    end: Point
    weight: float
    # How far a renderer should pull each end in so a round cap does not
    # poke out past a thinner stroke it meets.
    start_intersect_weight: Optional[float] = None
    end_intersect_weight: Optional[float] = None

    @property
    def length(self) -> float:
        return math.hypot(self.end[0] - self.start[0], self.end[1] - self.start[1])

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "start": _point_dict(self.start),
            "end": _point_dict(self.end),
            "weight": self.weight,
        }
        if self.start_intersect_weight is not None:
            data["start_intersect_weight"] = self.start_intersect_weight
        if self.end_intersect_weight is not None:
            data["end_intersect_weight"] = self.end_intersect_weight
        return data


@dataclass(slots=True)
class ArcSegment:
    center: Point
    radius: float
    start_angle: float  # radians
    end_angle: float  # radians
    weight: float

    def sweep(self) -> float:
        """Signed minor-arc sweep from start to end, within [-pi, pi].

        The angle pair alone does not say which of the two arcs is meant;
        renderers draw the minor one, choosing the direction from the sign.
        """
        delta = self.end_angle - self.start_angle
        while delta > math.pi:
            delta -= 2 * math.pi
        while delta < -math.pi:
            delta += 2 * math.pi
        return delta

    def start_point(self) -> Point:
        return Point(
            self.center[0] + self.radius * math.cos(self.start_angle),
            self.center[1] + self.radius * math.sin(self.start_angle),
        )

    def end_point(self) -> Point:
        return Point(
            self.center[0] + self.radius * math.cos(self.end_angle),
            self.center[1] + self.radius * math.sin(self.end_angle),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": _point_dict(self.center),
            "radius": self.radius,
            "start_angle": self.start_angle,
            "end_angle": self.end_angle,
            "sweep": self.sweep(),
            "weight": self.weight,
        }


@dataclass(slots=True)
class Polygon:
    """Closed ring, filled solid. ``weight`` is the stroke that produced it."""

    points: List[Point]
    weight: float

    def to_dict(self) -> Dict[str, Any]:
        return {"points": [_point_dict(p) for p in self.points], "weight": self.weight}


@dataclass(slots=True)
class RenderedSegments:
    lines: List[LineSegment] = field(default_factory=list)
    arcs: List[ArcSegment] = field(default_factory=list)
    polygons: List[Polygon] = field(default_factory=list)

    def extend(self, other: "RenderedSegments") -> None:
        self.lines.extend(other.lines)
        self.arcs.extend(other.arcs)
        self.polygons.extend(other.polygons)

    def is_empty(self) -> bool:
        return not (self.lines or self.arcs or self.polygons)

    def summary(self) -> str:
        return f"{len(self.lines)} lines / {len(self.arcs)} arcs / {len(self.polygons)} polygons"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "arcs": [a.to_dict() for a in self.arcs],
            "polygons": [p.to_dict() for p in self.polygons],
        }
