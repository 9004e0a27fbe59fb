"""skimap package: terrain sampling and spatial indexing for a 3D ski map.

Import constants FIRST so .env overrides and logging are in place before
any other module reads them.
"""

from skimap import constants as _constants  # noqa: F401

from skimap.coordinates import CoordinateProjector
from skimap.elevation import ElevationGrid, ChunkElevationMap, sample_elevation
from skimap.spatial_index import FeatureSpatialIndex
from skimap.areas import AreaAssigner
from skimap.merge import SegmentMerger
