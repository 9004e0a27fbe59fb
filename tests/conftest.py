"""Pytest configuration and shared fixtures for skimap tests."""

import sys
from pathlib import Path

import pytest

# Add repo root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from skimap.coordinates import CoordinateProjector  # noqa: E402
from skimap.elevation import ElevationGrid  # noqa: E402
from skimap.models import AreaPolygon  # noqa: E402


@pytest.fixture
def projector():
    """Projector at Sölden with the default 0.1 scene scale."""
    return CoordinateProjector(46.9147, 10.9975, 2284.0)


@pytest.fixture
def ramp_grid():
    """3x3 grid over [0, 20] x [0, 20]; height = 10*row + col (row 0 = max_z)."""
    data = [0, 1, 2,
            10, 11, 12,
            20, 21, 22]
    return ElevationGrid(data=data, cols=3, rows=3,
                         min_x=0.0, max_x=20.0, min_z=0.0, max_z=20.0)


@pytest.fixture
def two_areas():
    """Two adjacent unit-square areas, A west of B."""
    a = AreaPolygon(id="skiarea-1", name="Alpha",
                    ring=[(0, 0), (1, 0), (1, 1), (0, 1)])
    b = AreaPolygon(id="skiarea-2", name="Beta",
                    ring=[(1, 0), (2, 0), (2, 1), (1, 1)])
    return [a, b]
