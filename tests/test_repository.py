from itertools import count

import pytest

from kumiko.builtin_patterns import EMPTY_PATTERN_ID
from kumiko.commands import (
    ClearAllCells,
    ClearCell,
    EditPattern,
    FillAllCells,
    SetCellPattern,
    SetCellRotation,
)
from kumiko.model import CellConfig, Pattern
from kumiko.repository import BuiltInPatternError, PanelRepository, PatternRepository


def _ids(prefix):
    counter = count(1)
    return lambda: f"{prefix}-{next(counter)}"


def test_pattern_repository_protects_builtins():
    repo = PatternRepository()
    asanoha = repo.get("builtin-asanoha")

    assert len(repo) == 5 and "builtin-goma" in repo
    with pytest.raises(BuiltInPatternError):
        repo.upsert(asanoha)
    with pytest.raises(PermissionError):
        repo.remove("builtin-asanoha")
    impostor = Pattern(id="builtin-asanoha", name="Hijacked")
    with pytest.raises(BuiltInPatternError):
        repo.upsert(impostor)
    assert repo.get("builtin-asanoha") is asanoha


def test_stored_builtin_copies_are_ignored():
    repo = PatternRepository([Pattern(id="builtin-goma", name="Stale"), Pattern(id="mine")])
    assert repo.get("builtin-goma").name == "Goma"
    assert "mine" in repo


def test_pattern_lifecycle():
    repo = PatternRepository(include_builtins=False, id_factory=_ids("pat"))
    created = repo.create("Blank")
    assert created.id == "pat-1"
    assert repo.list() == [created]

    stored = repo.upsert(Pattern.from_dict({**created.to_dict(), "base_weight": 1.5}))
    assert repo.get("pat-1").base_weight == 1.5
    assert stored.modified >= created.modified

    assert repo.duplicate("missing") is None
    copy = repo.duplicate("pat-1")
    assert copy.id == "pat-2" and copy.name == "Blank (copy)"

    repo.remove("pat-1")
    repo.remove("pat-1")
    assert [p.id for p in repo] == ["pat-2"]


def test_duplicate_builtin():
    repo = PatternRepository(id_factory=_ids("user"))
    copy = repo.duplicate("builtin-shippo")
    assert not copy.is_built_in
    assert copy.corner_arcs == repo.get("builtin-shippo").corner_arcs
    repo.upsert(copy)
    repo.remove(copy.id)
    assert copy.id not in repo


def test_panel_repository():
    repo = PanelRepository(id_factory=_ids("panel"))
    panel = repo.create("Door", width_mm=300, height_mm=600, triangle_size_mm=25)

    assert panel.id == "panel-1"
    assert panel.default_pattern_id == EMPTY_PATTERN_ID
    assert panel.created > 0
    assert repo.get("panel-1") is panel
    with pytest.raises(ValueError):
        repo.create("Broken", width_mm=-1)
    repo.remove("panel-1")
    assert len(repo) == 0


@pytest.fixture
def panels():
    repo = PanelRepository(id_factory=_ids("panel"))
    repo.create("Screen", default_pattern_id="builtin-asanoha")
    return repo


def test_cell_commands(panels):
    panel = SetCellPattern("panel-1", 1, 2, "builtin-goma").apply(panels)
    assert panel.cell_config(1, 2) == CellConfig("builtin-goma", 0)
    assert panels.get("panel-1") is panel

    panel = SetCellRotation("panel-1", 1, 2, 240).apply(panels)
    assert panel.cell_config(1, 2).rotation == 240

    unchanged = SetCellRotation("panel-1", 0, 0, 120).apply(panels)
    assert unchanged.cell_config(0, 0) is None

    SetCellPattern("panel-1", 0, 0, "builtin-shippo", 120).apply(panels)
    panel = ClearCell("panel-1", 1, 2).apply(panels)
    assert list(panel.cells) == ["0,0"]

    panel = ClearAllCells("panel-1").apply(panels)
    assert panel.cells == {}


def test_fill_all_cells(panels):
    SetCellPattern("panel-1", 0, 1, "builtin-goma").apply(panels)
    panel = FillAllCells("panel-1", "builtin-sakura").apply(panels)
    assert panel.default_pattern_id == "builtin-sakura"
    assert panel.cells == {}


def test_commands_validate_inputs(panels):
    with pytest.raises(KeyError):
        ClearCell("nope", 0, 0).apply(panels)
    with pytest.raises(ValueError):
        SetCellPattern("panel-1", 0, 0, "builtin-goma", rotation=90).apply(panels)


def test_edit_pattern_command():
    repo = PatternRepository(id_factory=_ids("pat"))
    created = repo.create()
    edited = EditPattern(Pattern.from_dict({**created.to_dict(), "name": "Renamed"})).apply(repo)
    assert repo.get(created.id).name == "Renamed" == edited.name

    with pytest.raises(BuiltInPatternError):
        EditPattern(repo.get("builtin-goma")).apply(repo)
