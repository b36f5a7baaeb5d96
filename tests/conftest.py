from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Ensure repo root is importable when running pytest from any CWD.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from kumiko.builtin_patterns import BUILT_IN_PATTERNS
from kumiko.triangle import make_triangle


@pytest.fixture
def canonical_triangle():
    """Up-pointing 15 mm cell with its apex at the top."""
    return make_triangle((7.5, 0.0), (0.0, 12.99), (15.0, 12.99))


@pytest.fixture
def builtins():
    return dict(BUILT_IN_PATTERNS)


def polygon_area(points) -> float:
    total = 0.0
    for i, (x1, y1) in enumerate(points):
        x2, y2 = points[(i + 1) % len(points)]
        total += x1 * y2 - x2 * y1
    return abs(total) / 2


@pytest.fixture
def area():
    return polygon_area
