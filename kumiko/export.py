"""Geometry export for the panel generator.

Writes the compositor output as JSON for downstream renderers. The file is a
transient artifact of one run; pattern and panel storage live elsewhere.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .model import Panel, RenderedSegments

__all__ = [
    "geometry_document",
    "export_geometry",
]


def geometry_document(
    segments: RenderedSegments,
    panel: Optional[Panel] = None,
    report: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Assemble the JSON-ready document for one panel run."""
    doc: Dict[str, Any] = {}
    if panel is not None:
        doc["panel"] = panel.to_dict()
    if report is not None:
        doc["report"] = dict(report)
    doc["counts"] = {
        "lines": len(segments.lines),
        "arcs": len(segments.arcs),
        "polygons": len(segments.polygons),
    }
    doc.update(segments.to_dict())
    return doc


def export_geometry(
    segments: RenderedSegments,
    destination: Path,
    panel: Optional[Panel] = None,
    report: Optional[Mapping[str, Any]] = None,
) -> None:
    """Write rendered panel geometry as a JSON document."""
    doc = geometry_document(segments, panel=panel, report=report)
    destination.write_text(json.dumps(doc, indent=2), encoding="utf-8")
    logging.info("Wrote geometry %s (%s)", destination, segments.summary())
