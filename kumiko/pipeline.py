"""Step pipeline for one panel generation run.

Steps run in order from pattern loading to the JSON geometry file.
Steps share a ``PipelineContext`` and each decides through ``should_run``
whether it applies.

Usage::

    from kumiko.pipeline import KumikoPipeline, PipelineContext

    ctx = PipelineContext(params=my_params, out_dir=Path("exports"))
    pipeline = KumikoPipeline()          # default steps
    pipeline.run(ctx)
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List

from .model import Panel, RenderedSegments
from .panel import generate_panel_geometry
from .parameters import KumikoParameters
from .repository import PatternRepository

__all__ = [
    "PipelineContext",
    "PipelineStep",
    "KumikoPipeline",
    "RepositoryStep",
    "PanelStep",
    "GeometryStep",
    "SummaryStep",
    "GeometryExportStep",
    "default_steps",
]


# ---------------------------------------------------------------------------
# Pipeline context: shared state between steps
# ---------------------------------------------------------------------------


@dataclass
class PipelineContext:
    """State shared by the steps of one run."""

    params: KumikoParameters
    out_dir: Path = field(default_factory=lambda: Path("exports"))

    # Export control (typically populated from CLI).
    skip_export: bool = False
    geometry_name: str = "panel_geometry.json"

    # Populated by RepositoryStep / PanelStep.
    patterns: PatternRepository | None = None
    panel: Panel | None = None

    # Populated by GeometryStep.
    segments: RenderedSegments | None = None
    report: Dict[str, Any] = field(default_factory=dict)

    @property
    def geometry_path(self) -> Path:
        return self.out_dir / self.geometry_name


# ---------------------------------------------------------------------------
# Step base class
# ---------------------------------------------------------------------------


class PipelineStep(ABC):
    """One stage of a panel generation run."""

    name: str = "unnamed"

    def should_run(self, ctx: PipelineContext) -> bool:
        """Whether this step applies to *ctx*."""
        return True

    @abstractmethod
    def execute(self, ctx: PipelineContext) -> None:
        """Do the work, reading and filling fields of *ctx*."""


# ---------------------------------------------------------------------------
# Concrete steps
# ---------------------------------------------------------------------------


class RepositoryStep(PipelineStep):
    """Load built-in patterns plus any configured user patterns."""

    name = "repository"

    def execute(self, ctx: PipelineContext) -> None:
        ctx.patterns = PatternRepository(ctx.params.user_patterns())
        logging.info("Loaded %d patterns", len(ctx.patterns))


class PanelStep(PipelineStep):
    """Build the panel record from parameters."""

    name = "panel"

    def execute(self, ctx: PipelineContext) -> None:
        ctx.panel = ctx.params.to_panel()
        logging.info(
            "Panel: %.1f x %.1f mm, triangle=%.2f mm, default=%s, %d cell overrides",
            ctx.panel.width_mm,
            ctx.panel.height_mm,
            ctx.panel.triangle_size_mm,
            ctx.panel.default_pattern_id,
            len(ctx.panel.cells),
        )


class GeometryStep(PipelineStep):
    """Compose the panel geometry."""

    name = "geometry"

    def should_run(self, ctx: PipelineContext) -> bool:
        return ctx.panel is not None and ctx.patterns is not None

    def execute(self, ctx: PipelineContext) -> None:
        ctx.report = {}
        ctx.segments = generate_panel_geometry(
            ctx.panel,
            ctx.patterns,
            edge_parallel_as_polygon=ctx.params.edge_parallel_as_polygon,
            report=ctx.report,
        )


class SummaryStep(PipelineStep):
    """Log what the geometry step produced."""

    name = "summary"

    def should_run(self, ctx: PipelineContext) -> bool:
        return ctx.segments is not None

    def execute(self, ctx: PipelineContext) -> None:
        _log_geometry_report(ctx.segments, ctx.report)


class GeometryExportStep(PipelineStep):
    """Write the geometry JSON."""

    name = "geometry_export"

    def should_run(self, ctx: PipelineContext) -> bool:
        if ctx.skip_export:
            logging.info("Geometry export disabled; skipping")
            return False
        return ctx.segments is not None

    def execute(self, ctx: PipelineContext) -> None:
        from .export import export_geometry

        ctx.out_dir.mkdir(parents=True, exist_ok=True)
        export_geometry(ctx.segments, ctx.geometry_path, panel=ctx.panel, report=ctx.report)


# ---------------------------------------------------------------------------
# Pipeline orchestrator
# ---------------------------------------------------------------------------


def default_steps() -> List[PipelineStep]:
    """Fresh instances of the standard steps, in run order."""
    return [
        RepositoryStep(),
        PanelStep(),
        GeometryStep(),
        SummaryStep(),
        GeometryExportStep(),
    ]


class KumikoPipeline:
    """Runs the generation steps in order.

    The step list is plain data; callers can reorder it or splice in their own
    steps by name.
    """

    def __init__(self, steps: List[PipelineStep] | None = None) -> None:
        self.steps = list(steps) if steps is not None else default_steps()

    def run(self, ctx: PipelineContext) -> None:
        for step in self.steps:
            if not step.should_run(ctx):
                continue
            logging.info("[pipeline] %s", step.name)
            step.execute(ctx)

    def _index(self, name: str) -> int | None:
        return next((i for i, s in enumerate(self.steps) if s.name == name), None)

    def insert_before(self, reference_name: str, step: PipelineStep) -> None:
        """Insert *step* ahead of *reference_name*, or append when it is absent."""
        i = self._index(reference_name)
        self.steps.insert(len(self.steps) if i is None else i, step)

    def insert_after(self, reference_name: str, step: PipelineStep) -> None:
        """Insert *step* behind *reference_name*, or append when it is absent."""
        i = self._index(reference_name)
        self.steps.insert(len(self.steps) if i is None else i + 1, step)

    def remove(self, step_name: str) -> None:
        self.steps = [s for s in self.steps if s.name != step_name]

    def replace(self, step_name: str, new_step: PipelineStep) -> None:
        """Swap the named step for *new_step*; append when there is none."""
        i = self._index(step_name)
        if i is None:
            self.steps.append(new_step)
        else:
            self.steps[i] = new_step


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _log_geometry_report(segments: RenderedSegments, report: Dict[str, Any]) -> None:
    logging.info("Geometry summary: %s", segments.summary())
    missing_default = report.get("missing_default_pattern")
    if missing_default:
        logging.error("Default pattern %s not found; panel is empty", missing_default)
    missing = report.get("missing_patterns", [])
    if missing:
        logging.warning("%d cell patterns not found (fell back to default): %s", len(missing), missing)
    grid = report.get("grid")
    if grid:
        logging.info(
            "Grid %d x %d: %d cells rendered, %d off-panel",
            grid["rows"],
            grid["cols"],
            report.get("cells_rendered", 0),
            report.get("cells_skipped", 0),
        )
