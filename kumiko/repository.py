"""In-memory pattern and panel repositories.

Both expose ``get``/``list``/``upsert``/``remove``. Records are immutable;
``upsert`` replaces the whole record and stamps ``modified``. Built-in
patterns can be read and duplicated but not replaced or removed.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import replace
from typing import Callable, Dict, Iterable, Iterator, List, Optional

from .builtin_patterns import EMPTY_PATTERN_ID, builtin_patterns, create_empty_pattern, duplicate_pattern
from .model import Panel, Pattern, now_ms

__all__ = [
    "BuiltInPatternError",
    "PatternRepository",
    "PanelRepository",
]

log = logging.getLogger(__name__)


class BuiltInPatternError(PermissionError):
    """Raised when a built-in pattern would be replaced or removed."""


def _new_id() -> str:
    return str(uuid.uuid4())


class PatternRepository:
    """Pattern store keyed by id, seeded with the built-in catalogue."""

    def __init__(
        self,
        patterns: Optional[Iterable[Pattern]] = None,
        include_builtins: bool = True,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._patterns: Dict[str, Pattern] = {}
        self._id_factory = id_factory
        if include_builtins:
            for pattern in builtin_patterns():
                self._patterns[pattern.id] = pattern
        for pattern in patterns or ():
            if pattern.id in self._patterns and self._patterns[pattern.id].is_built_in:
                log.info("Ignoring stored copy of built-in pattern %s", pattern.id)
                continue
            self._patterns[pattern.id] = pattern

    def __contains__(self, pattern_id: object) -> bool:
        return pattern_id in self._patterns

    def __len__(self) -> int:
        return len(self._patterns)

    def __iter__(self) -> Iterator[Pattern]:
        return iter(list(self._patterns.values()))

    def get(self, pattern_id: str) -> Optional[Pattern]:
        return self._patterns.get(pattern_id)

    def list(self) -> List[Pattern]:
        return list(self._patterns.values())

    def upsert(self, pattern: Pattern) -> Pattern:
        existing = self._patterns.get(pattern.id)
        if pattern.is_built_in or (existing is not None and existing.is_built_in):
            raise BuiltInPatternError(f"Built-in pattern '{pattern.id}' cannot be modified")
        stored = replace(pattern, modified=now_ms())
        self._patterns[pattern.id] = stored
        return stored

    def remove(self, pattern_id: str) -> None:
        existing = self._patterns.get(pattern_id)
        if existing is None:
            return
        if existing.is_built_in:
            raise BuiltInPatternError(f"Built-in pattern '{pattern_id}' cannot be removed")
        del self._patterns[pattern_id]

    def create(self, name: str = "New Pattern") -> Pattern:
        pattern = create_empty_pattern(self._id_factory(), name)
        self._patterns[pattern.id] = pattern
        return pattern

    def duplicate(self, pattern_id: str) -> Optional[Pattern]:
        """Copy *pattern_id* into a new user pattern; ``None`` if it does not exist."""
        source = self._patterns.get(pattern_id)
        if source is None:
            return None
        copy = duplicate_pattern(source, self._id_factory())
        self._patterns[copy.id] = copy
        return copy


class PanelRepository:
    """Panel store keyed by id."""

    def __init__(
        self,
        panels: Optional[Iterable[Panel]] = None,
        id_factory: Callable[[], str] = _new_id,
    ) -> None:
        self._panels: Dict[str, Panel] = {p.id: p for p in panels or ()}
        self._id_factory = id_factory

    def __contains__(self, panel_id: object) -> bool:
        return panel_id in self._panels

    def __len__(self) -> int:
        return len(self._panels)

    def __iter__(self) -> Iterator[Panel]:
        return iter(list(self._panels.values()))

    def get(self, panel_id: str) -> Optional[Panel]:
        return self._panels.get(panel_id)

    def list(self) -> List[Panel]:
        return list(self._panels.values())

    def upsert(self, panel: Panel) -> Panel:
        stored = replace(panel, modified=now_ms())
        self._panels[panel.id] = stored
        return stored

    def remove(self, panel_id: str) -> None:
        self._panels.pop(panel_id, None)

    def create(
        self,
        name: str = "New Panel",
        width_mm: float = 100.0,
        height_mm: float = 100.0,
        triangle_size_mm: float = 10.0,
        stl_depth_mm: float = 3.0,
        default_pattern_id: str = EMPTY_PATTERN_ID,
    ) -> Panel:
        stamp = now_ms()
        panel = Panel(
            id=self._id_factory(),
            name=name,
            created=stamp,
            modified=stamp,
            width_mm=width_mm,
            height_mm=height_mm,
            triangle_size_mm=triangle_size_mm,
            stl_depth_mm=stl_depth_mm,
            default_pattern_id=default_pattern_id,
        )
        self._panels[panel.id] = panel
        return panel
