"""Edit commands applied to the pattern and panel repositories.

Each command is a small value object whose ``apply`` builds a replacement
record and upserts it, so records are never edited in place. Commands can be
queued, logged, or replayed independently of any UI timer.

Usage::

    from kumiko.commands import SetCellPattern

    SetCellPattern(panel_id, row=2, col=3, pattern_id="builtin-goma").apply(panels)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict

from .model import CellConfig, Panel, Pattern
from .repository import PanelRepository, PatternRepository

__all__ = [
    "PanelCommand",
    "PatternCommand",
    "SetCellPattern",
    "SetCellRotation",
    "ClearCell",
    "ClearAllCells",
    "FillAllCells",
    "EditPattern",
]


class PanelCommand(ABC):
    """A single edit to one panel."""

    name: str = "unnamed"

    def _panel(self, repo: PanelRepository, panel_id: str) -> Panel:
        panel = repo.get(panel_id)
        if panel is None:
            raise KeyError(f"Unknown panel '{panel_id}'")
        return panel

    @abstractmethod
    def apply(self, repo: PanelRepository) -> Panel:
        """Apply the edit and return the stored replacement panel."""
        ...


class PatternCommand(ABC):
    name: str = "unnamed"

    @abstractmethod
    def apply(self, repo: PatternRepository) -> Pattern:
        ...


@dataclass(frozen=True)
class SetCellPattern(PanelCommand):
    panel_id: str
    row: int
    col: int
    pattern_id: str
    rotation: int = 0

    name = "set_cell_pattern"

    def apply(self, repo: PanelRepository) -> Panel:
        panel = self._panel(repo, self.panel_id)
        cells: Dict[str, CellConfig] = dict(panel.cells)
        cells[Panel.cell_key(self.row, self.col)] = CellConfig(self.pattern_id, self.rotation)
        return repo.upsert(replace(panel, cells=cells))


@dataclass(frozen=True)
class SetCellRotation(PanelCommand):
    """Rotate an overridden cell; cells showing the default are left alone."""

    panel_id: str
    row: int
    col: int
    rotation: int

    name = "set_cell_rotation"

    def apply(self, repo: PanelRepository) -> Panel:
        panel = self._panel(repo, self.panel_id)
        key = Panel.cell_key(self.row, self.col)
        existing = panel.cells.get(key)
        if existing is None:
            return panel
        cells = dict(panel.cells)
        cells[key] = replace(existing, rotation=self.rotation)
        return repo.upsert(replace(panel, cells=cells))


@dataclass(frozen=True)
class ClearCell(PanelCommand):
    panel_id: str
    row: int
    col: int

    name = "clear_cell"

    def apply(self, repo: PanelRepository) -> Panel:
        panel = self._panel(repo, self.panel_id)
        cells = dict(panel.cells)
        cells.pop(Panel.cell_key(self.row, self.col), None)
        return repo.upsert(replace(panel, cells=cells))


@dataclass(frozen=True)
class ClearAllCells(PanelCommand):
    panel_id: str

    name = "clear_all_cells"

    def apply(self, repo: PanelRepository) -> Panel:
        panel = self._panel(repo, self.panel_id)
        return repo.upsert(replace(panel, cells={}))


@dataclass(frozen=True)
class FillAllCells(PanelCommand):
    """Make *pattern_id* the panel default and drop every override."""

    panel_id: str
    pattern_id: str

    name = "fill_all_cells"

    def apply(self, repo: PanelRepository) -> Panel:
        panel = self._panel(repo, self.panel_id)
        return repo.upsert(replace(panel, default_pattern_id=self.pattern_id, cells={}))


@dataclass(frozen=True)
class EditPattern(PatternCommand):
    """Replace a user pattern wholesale."""

    pattern: Pattern

    name = "edit_pattern"

    def apply(self, repo: PatternRepository) -> Pattern:
        return repo.upsert(self.pattern)
