"""Elevation grids and chunked terrain height lookup.

Provides:
1. ElevationGrid: an immutable height-field with O(1) bilinear sampling
2. Vectorised batch sampling and projection of polylines onto terrain
3. ChunkElevationMap: a sparse set of grids keyed by fixed-size chunks,
   tolerant of chunks that are still loading

Grid orientation: row 0 is the **max_z** edge of the grid, which is the
geographic *south* edge because north is -z in scene space. Columns run
from min_x (west) to max_x (east). Construction (``from_raster``) and
sampling both follow this convention.
"""

import math
import logging
from dataclasses import dataclass

import numpy as np

from .constants import (
    OUT_OF_BOUNDS_ELEVATION, DEFAULT_TERRAIN_OFFSET, DEFAULT_CHUNK_SIZE,
    CHUNK_ALIGNMENT_TOLERANCE,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class ElevationGrid:
    """Row-major height-field over an axis-aligned world rectangle.

    Parameters
    ----------
    data : array-like, cols * rows heights in scene units, row 0 = max_z
    cols, rows : int, vertex counts along x and z (both >= 2)
    min_x, max_x, min_z, max_z : float, world-space bounds
    """
    data: np.ndarray
    cols: int
    rows: int
    min_x: float
    max_x: float
    min_z: float
    max_z: float

    def __post_init__(self):
        data = np.array(self.data, dtype=np.float64).ravel()
        if self.cols < 2 or self.rows < 2:
            raise ValueError(
                f"Elevation grid needs at least 2x2 vertices, got {self.cols}x{self.rows}")
        if data.size != self.cols * self.rows:
            raise ValueError(
                f"Elevation data length {data.size} does not match "
                f"cols*rows = {self.cols}*{self.rows} = {self.cols * self.rows}")
        if not (self.min_x < self.max_x and self.min_z < self.max_z):
            raise ValueError(
                f"Invalid grid bounds: x [{self.min_x}, {self.max_x}], "
                f"z [{self.min_z}, {self.max_z}]")
        data.flags.writeable = False
        object.__setattr__(self, 'data', data)

    @property
    def cell_width(self) -> float:
        return (self.max_x - self.min_x) / (self.cols - 1)

    @property
    def cell_depth(self) -> float:
        return (self.max_z - self.min_z) / (self.rows - 1)

    def contains(self, x: float, z: float) -> bool:
        return self.min_x <= x <= self.max_x and self.min_z <= z <= self.max_z

    def as_2d(self) -> np.ndarray:
        """Read-only (rows, cols) view of the heights."""
        return self.data.reshape(self.rows, self.cols)

    @classmethod
    def from_raster(cls, heights, width, height, geo_bounds, projector):
        """Build a grid from a decoded north-up elevation raster.

        Parameters
        ----------
        heights : array-like, width * height elevations in metres,
            row 0 = north edge (raster / slippy-tile convention)
        width, height : int, raster dimensions in pixels
        geo_bounds : GeoBounds, geographic extent of the raster
        projector : CoordinateProjector, defines the scene frame

        Returns
        -------
        ElevationGrid with heights in scene units
        """
        arr = np.asarray(heights, dtype=np.float64)
        if arr.size != width * height:
            raise ValueError(
                f"Raster has {arr.size} samples, expected {width}x{height}")
        arr = arr.reshape(height, width)

        # raster row 0 = north = min_z; our convention row 0 = max_z
        arr = arr[::-1, :]

        n_nan = int(np.isnan(arr).sum())
        if n_nan:
            logger.warning(f"Raster has {n_nan} nodata samples - filling with "
                           f"{projector.center_elevation:.0f}m")
            arr = np.where(np.isnan(arr), projector.center_elevation, arr)

        scaled = (arr - projector.center_elevation) * projector.scale
        b = projector.local_bounds(geo_bounds)
        grid = cls(data=scaled.ravel(), cols=width, rows=height,
                   min_x=b['min_x'], max_x=b['max_x'],
                   min_z=b['min_z'], max_z=b['max_z'])
        logger.debug(f"Elevation grid {width}x{height} from raster, "
                     f"range {float(arr.min()):.0f}m - {float(arr.max()):.0f}m")
        return grid


def sample_elevation(grid: ElevationGrid, x: float, z: float) -> float:
    """Bilinear interpolation of terrain height at world (x, z).

    Returns OUT_OF_BOUNDS_ELEVATION (0) outside the grid.
    """
    if not (grid.min_x <= x <= grid.max_x and grid.min_z <= z <= grid.max_z):
        return OUT_OF_BOUNDS_ELEVATION

    gx = (x - grid.min_x) / (grid.max_x - grid.min_x) * (grid.cols - 1)
    # Z is inverted: row 0 sits on the max_z edge
    gz = (grid.max_z - z) / (grid.max_z - grid.min_z) * (grid.rows - 1)

    # Clamp so points on the max edges use the last cell with f = 1
    ix = min(int(gx), grid.cols - 2)
    iz = min(int(gz), grid.rows - 2)
    fx = gx - ix
    fz = gz - iz

    d = grid.data
    row0 = iz * grid.cols
    row1 = row0 + grid.cols
    h00 = d[row0 + ix]
    h10 = d[row0 + ix + 1]
    h01 = d[row1 + ix]
    h11 = d[row1 + ix + 1]

    return float(h00 * (1 - fx) * (1 - fz) +
                 h10 * fx * (1 - fz) +
                 h01 * (1 - fx) * fz +
                 h11 * fx * fz)


def sample_elevation_batch(grid: ElevationGrid, xs, zs) -> np.ndarray:
    """Vectorized bilinear interpolation for arrays of world points.

    xs, zs: 1-D arrays of coordinates.
    Returns 1-D float64 array; points outside the grid get 0.
    """
    xs = np.asarray(xs, dtype=np.float64)
    zs = np.asarray(zs, dtype=np.float64)
    out = np.full(xs.shape, OUT_OF_BOUNDS_ELEVATION, dtype=np.float64)

    inside = ((xs >= grid.min_x) & (xs <= grid.max_x) &
              (zs >= grid.min_z) & (zs <= grid.max_z))
    if not inside.any():
        return out

    gx = (xs[inside] - grid.min_x) / (grid.max_x - grid.min_x) * (grid.cols - 1)
    gz = (grid.max_z - zs[inside]) / (grid.max_z - grid.min_z) * (grid.rows - 1)

    ix = np.minimum(gx.astype(np.intp), grid.cols - 2)
    iz = np.minimum(gz.astype(np.intp), grid.rows - 2)
    fx = gx - ix
    fz = gz - iz

    elev_2d = grid.as_2d()
    h00 = elev_2d[iz, ix]
    h10 = elev_2d[iz, ix + 1]
    h01 = elev_2d[iz + 1, ix]
    h11 = elev_2d[iz + 1, ix + 1]

    out[inside] = (h00 * (1 - fx) * (1 - fz) +
                   h10 * fx * (1 - fz) +
                   h01 * (1 - fx) * fz +
                   h11 * fx * fz)
    return out


def project_points(grid: ElevationGrid, points, offset: float = DEFAULT_TERRAIN_OFFSET) -> list:
    """Drape [x, y, z] points onto the grid; y is replaced by terrain + offset."""
    if len(points) == 0:
        return []
    pts = np.asarray(points, dtype=np.float64)
    ys = sample_elevation_batch(grid, pts[:, 0], pts[:, 2]) + offset
    return [(float(x), float(y), float(z))
            for x, y, z in zip(pts[:, 0], ys, pts[:, 2])]


def project_routes(grid: ElevationGrid, routes, offset: float = DEFAULT_TERRAIN_OFFSET) -> list:
    """Project several polylines in one call."""
    return [project_points(grid, route, offset) for route in routes]


def elevation_meters(grid: ElevationGrid, projector, lat: float, lon: float) -> float:
    """Real-world elevation in metres at a lat/lon, read from the grid."""
    x, _, z = projector.geo_to_local(lat, lon, 0.0)
    y = sample_elevation(grid, x, z)
    return projector.local_to_geo(x, y, z).elevation


# ── Chunked elevation ────────────────────────────────────────────────────

def world_to_chunk_key(x: float, z: float, chunk_size: float) -> tuple:
    """Integer (cx, cz) of the chunk that owns world point (x, z)."""
    return math.floor(x / chunk_size), math.floor(z / chunk_size)


# Cardinal neighbours probed when the owning chunk is not loaded
_NEIGHBOR_OFFSETS = ((1, 0), (-1, 0), (0, 1), (0, -1))


class ChunkElevationMap:
    """Sparse collection of ElevationGrids keyed by chunk.

    Chunks are contiguous and non-overlapping; each grid covers exactly
    [cx*size, (cx+1)*size] x [cz*size, (cz+1)*size]. An external loader
    adds and removes chunks as the camera moves; sampling never fails,
    it falls back to neighbours and finally to 0.
    """

    def __init__(self, chunk_size: float = DEFAULT_CHUNK_SIZE):
        if not chunk_size > 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = float(chunk_size)
        self._chunks = {}

    def __len__(self):
        return len(self._chunks)

    def __contains__(self, key):
        return tuple(key) in self._chunks

    def __repr__(self):
        return f"ChunkElevationMap(chunk_size={self.chunk_size}, chunks={len(self._chunks)})"

    def keys(self):
        return list(self._chunks)

    def chunk_bounds(self, key) -> tuple:
        """(min_x, max_x, min_z, max_z) a grid for ``key`` must cover."""
        cx, cz = key
        s = self.chunk_size
        return cx * s, (cx + 1) * s, cz * s, (cz + 1) * s

    def add_chunk(self, key, grid: ElevationGrid) -> None:
        """Insert or replace the grid for ``key``."""
        key = (int(key[0]), int(key[1]))
        min_x, max_x, min_z, max_z = self.chunk_bounds(key)
        tol = CHUNK_ALIGNMENT_TOLERANCE * max(1.0, self.chunk_size)
        if (abs(grid.min_x - min_x) > tol or abs(grid.max_x - max_x) > tol or
                abs(grid.min_z - min_z) > tol or abs(grid.max_z - max_z) > tol):
            raise ValueError(
                f"Grid bounds x [{grid.min_x}, {grid.max_x}] z [{grid.min_z}, {grid.max_z}] "
                f"are not aligned to chunk {key} "
                f"(expected x [{min_x}, {max_x}] z [{min_z}, {max_z}])")
        if key in self._chunks:
            logger.debug(f"Replacing elevation chunk {key}")
        self._chunks[key] = grid

    def remove_chunk(self, key) -> None:
        """Drop the grid for ``key``; unknown keys are ignored."""
        self._chunks.pop((int(key[0]), int(key[1])), None)

    def get_chunk(self, key):
        return self._chunks.get((int(key[0]), int(key[1])))

    def clear(self) -> None:
        self._chunks.clear()

    def find_grid(self, x: float, z: float):
        """Grid that should answer a query at (x, z), or None."""
        if not (math.isfinite(x) and math.isfinite(z)):
            return None
        cx, cz = world_to_chunk_key(x, z, self.chunk_size)
        grid = self._chunks.get((cx, cz))
        if grid is not None and grid.contains(x, z):
            return grid

        # Owner not loaded, or its bounds stop just short of a seam
        # within the alignment tolerance - try adjacent chunks
        for dx, dz in _NEIGHBOR_OFFSETS:
            nearby = self._chunks.get((cx + dx, cz + dz))
            if nearby is not None and nearby.contains(x, z):
                return nearby
        return None

    def sample(self, x: float, z: float) -> float:
        """Terrain height at (x, z), 0 when no loaded chunk covers it."""
        grid = self.find_grid(x, z)
        if grid is None:
            return OUT_OF_BOUNDS_ELEVATION
        return sample_elevation(grid, x, z)

    def project_points(self, points, offset: float = DEFAULT_TERRAIN_OFFSET) -> list:
        """Drape [x, y, z] points onto the loaded chunks."""
        return [(float(x), self.sample(x, z) + offset, float(z))
                for x, _y, z in points]


def sample_elevation_from_chunks(chunk_map: ChunkElevationMap, x: float, z: float) -> float:
    return chunk_map.sample(x, z)
