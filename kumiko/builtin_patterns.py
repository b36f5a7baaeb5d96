"""Built-in pattern catalogue and pattern factories."""

from __future__ import annotations

from dataclasses import replace
from typing import Dict, List

from .model import ArcConfig, CornerToCenterConfig, EdgeParallelConfig, Pattern, now_ms

__all__ = [
    "EMPTY_PATTERN_ID",
    "BUILT_IN_PATTERNS",
    "builtin_patterns",
    "create_empty_pattern",
    "duplicate_pattern",
]

EMPTY_PATTERN_ID = "builtin-empty"

_DEFAULT_BASE_WEIGHT = 0.8


def _asanoha() -> Pattern:
    line = CornerToCenterConfig(weight_multiplier=1.0, blocked_by=None, start_side="corner")
    return Pattern(
        id="builtin-asanoha",
        name="Asanoha",
        description="Traditional hemp leaf pattern - three lines from corners meeting at center",
        tags=("traditional", "geometric"),
        is_built_in=True,
        base_weight=_DEFAULT_BASE_WEIGHT,
        corner_to_center={"A": line, "B": line, "C": line},
    )


def _goma() -> Pattern:
    band = EdgeParallelConfig(position_mode="from-edge", distance=2.0, weight_multiplier=1.0, is_blocker=False)
    return Pattern(
        id="builtin-goma",
        name="Goma",
        description="Sesame seed pattern - inner triangle formed by edge-parallel segments",
        tags=("traditional", "geometric"),
        is_built_in=True,
        base_weight=_DEFAULT_BASE_WEIGHT,
        edge_parallel={"BC": band, "CA": band, "AB": band},
    )


def _sakura() -> Pattern:
    line = CornerToCenterConfig(weight_multiplier=1.0, blocked_by="edgeParallel", start_side="center")
    band = EdgeParallelConfig(position_mode="from-corner", distance=2.5, weight_multiplier=1.5, is_blocker=True)
    return Pattern(
        id="builtin-sakura",
        name="Sakura",
        description="Cherry blossom pattern - thick segments near corners with center lines",
        tags=("traditional", "floral"),
        is_built_in=True,
        base_weight=_DEFAULT_BASE_WEIGHT,
        corner_to_center={"A": line, "B": line, "C": line},
        edge_parallel={"BC": band, "CA": band, "AB": band},
    )


def _shippo() -> Pattern:
    arc = ArcConfig(radius=15.0, weight_multiplier=1.0)
    return Pattern(
        id="builtin-shippo",
        name="Shippo",
        description="Seven treasures pattern - inner triangle with curved arcs",
        tags=("traditional", "curved"),
        is_built_in=True,
        base_weight=_DEFAULT_BASE_WEIGHT,
        corner_arcs={"AB": arc, "BC": arc, "CA": arc},
    )


def _empty() -> Pattern:
    return Pattern(
        id=EMPTY_PATTERN_ID,
        name="Empty",
        description="Triangle edges only",
        tags=("basic",),
        is_built_in=True,
        base_weight=_DEFAULT_BASE_WEIGHT,
    )


BUILT_IN_PATTERNS: Dict[str, Pattern] = {
    p.id: p for p in (_empty(), _asanoha(), _goma(), _sakura(), _shippo())
}


def builtin_patterns() -> List[Pattern]:
    return list(BUILT_IN_PATTERNS.values())


def create_empty_pattern(pattern_id: str, name: str = "New Pattern") -> Pattern:
    """A user-owned pattern with all nine slots unset."""
    stamp = now_ms()
    return Pattern(
        id=pattern_id,
        name=name,
        created=stamp,
        modified=stamp,
        is_built_in=False,
        base_weight=_DEFAULT_BASE_WEIGHT,
    )


def duplicate_pattern(source: Pattern, new_id: str) -> Pattern:
    """User-owned copy of *source* under *new_id*."""
    stamp = now_ms()
    return replace(
        source,
        id=new_id,
        name=f"{source.name} (copy)",
        tags=tuple(source.tags),
        is_built_in=False,
        created=stamp,
        modified=stamp,
        corner_to_center=dict(source.corner_to_center),
        edge_parallel=dict(source.edge_parallel),
        corner_arcs=dict(source.corner_arcs),
    )
