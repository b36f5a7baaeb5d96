#!/usr/bin/env python3
"""Headless entry point for the kumiko panel generator."""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Sequence

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from kumiko.parameters import load_parameters, parse_cli_overrides
from kumiko.pipeline import KumikoPipeline, PipelineContext


def configure_logging() -> None:
    logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")


def main(argv: Sequence[str] | None = None) -> PipelineContext:
    configure_logging()
    overrides, cli = parse_cli_overrides(_sanitized_args(argv))
    config_path = _resolve_config_path(cli.config)
    params = load_parameters(config_path, overrides)
    logging.info(
        "Parameters: %.1fx%.1fmm triangle=%.2fmm pattern=%s mode=%s",
        params.width_mm,
        params.height_mm,
        params.triangle_size_mm,
        params.default_pattern_id,
        params.edge_parallel_mode,
    )

    ctx = PipelineContext(
        params=params,
        out_dir=Path(cli.out_dir),
        skip_export=cli.skip_export,
        geometry_name=cli.geometry_name,
    )
    KumikoPipeline().run(ctx)
    return ctx


def _sanitized_args(argv: Sequence[str] | None) -> List[str]:
    raw = list(sys.argv[1:] if argv is None else argv)
    return [arg for arg in raw if arg not in {"--", "-"}]


def _default_config_path() -> str | None:
    candidate = REPO_ROOT / "configs" / "panel.json"
    if candidate.exists():
        return str(candidate)
    return None


def _resolve_config_path(cli_config: str | None) -> str | None:
    if cli_config:
        path = Path(cli_config)
        if path.exists():
            return str(path)
        logging.warning("Config file %s not found; trying project default", path)
    default = _default_config_path()
    if default is None:
        logging.info("No configuration file; using built-in defaults")
    return default


if __name__ == "__main__":
    main()
