"""Nearest-feature lookup for hover/click selection of pistes and lifts.

Features are stored as terrain-projected 3D polylines. A query computes the
3D point-to-segment distance to every candidate feature, so the pointer can
select a thin line without hitting it exactly.

The index is type-agnostic: it stores an opaque ``(id, type)`` tag and the
geometry. It is rebuilt wholesale whenever the source data or the visibility
filters change, and queried once per pointer event.

With ``cell_size`` set, segments are also bucketed into a uniform (x, z)
grid of feature ids and finite-radius queries only visit the cells that
cover the search radius (the 3x3 neighbourhood when
``max_distance <= cell_size``). Results are identical to a full scan.
"""

import math
import logging
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IndexedFeature:
    id: str
    type: str
    points: tuple


@dataclass(frozen=True)
class NearestResult:
    id: str
    type: str
    distance: float
    closest_point: tuple


def point_to_segment_distance(p, a, b):
    """Distance from 3D point ``p`` to segment ``a``-``b``.

    Returns (distance, closest_point). A zero-length segment is a point.
    """
    px, py, pz = p
    ax, ay, az = a
    dx, dy, dz = b[0] - ax, b[1] - ay, b[2] - az
    length_sq = dx * dx + dy * dy + dz * dz

    if length_sq == 0:
        t = 0.0
    else:
        # Project onto the line, clamped to the segment
        t = ((px - ax) * dx + (py - ay) * dy + (pz - az) * dz) / length_sq
        t = max(0.0, min(1.0, t))

    cx, cy, cz = ax + t * dx, ay + t * dy, az + t * dz
    dist = math.sqrt((px - cx) ** 2 + (py - cy) ** 2 + (pz - cz) ** 2)
    return dist, (cx, cy, cz)


def point_to_polyline_distance(p, points):
    """Minimum distance from ``p`` to any segment of ``points``."""
    if len(points) == 1:
        return point_to_segment_distance(p, points[0], points[0])

    best = math.inf
    closest = points[0]
    for a, b in zip(points, points[1:]):
        dist, c = point_to_segment_distance(p, a, b)
        if dist < best:
            best = dist
            closest = c
    return best, closest


class FeatureSpatialIndex:
    """Spatial index of line features for "click anywhere" selection."""

    def __init__(self, cell_size: Optional[float] = None):
        if cell_size is not None and not cell_size > 0:
            raise ValueError(f"cell_size must be positive, got {cell_size}")
        self.cell_size = cell_size
        self._features = []
        self._buckets = {}

    def __len__(self):
        return len(self._features)

    def __repr__(self):
        return (f"FeatureSpatialIndex(features={len(self._features)}, "
                f"cell_size={self.cell_size})")

    @property
    def features(self) -> list:
        return list(self._features)

    def clear(self) -> None:
        """Drop all indexed features."""
        self._features = []
        self._buckets = {}

    def add_feature(self, feature_id, feature_type, points) -> None:
        """Add an already terrain-projected polyline of (x, y, z) points."""
        pts = tuple((float(x), float(y), float(z)) for x, y, z in points)
        if not pts:
            raise ValueError(f"Feature {feature_id!r} has no points")
        if not all(math.isfinite(v) for pt in pts for v in pt):
            raise ValueError(f"Feature {feature_id!r} has a non-finite coordinate")

        idx = len(self._features)
        self._features.append(IndexedFeature(feature_id, feature_type, pts))

        if self.cell_size is not None:
            segments = zip(pts, pts[1:]) if len(pts) > 1 else [(pts[0], pts[0])]
            for a, b in segments:
                for cell in self._cells_for_segment(a, b):
                    self._buckets.setdefault(cell, set()).add(idx)

    def _cells_for_segment(self, a, b):
        """Cells the (x, z) projection of segment a-b passes through.

        Walks one column of cells at a time and takes the z-span of the
        segment inside that column, so a diagonal segment touches O(L / cell)
        cells rather than its whole bounding box. Spans are padded by a
        rounding margin so corner crossings are never missed.
        """
        cs = self.cell_size
        (ax, az), (bx, bz) = sorted(((a[0], a[2]), (b[0], b[2])))
        eps = 1e-9 * max(cs, abs(ax), abs(bx), abs(az), abs(bz))
        dx = bx - ax

        for cx in range(math.floor((ax - eps) / cs), math.floor((bx + eps) / cs) + 1):
            if dx == 0:
                z_lo, z_hi = az, bz
            else:
                x_lo = min(max(ax, cx * cs), bx)
                x_hi = max(min(bx, (cx + 1) * cs), ax)
                z_lo = az + (x_lo - ax) / dx * (bz - az)
                z_hi = az + (x_hi - ax) / dx * (bz - az)
            z_lo, z_hi = min(z_lo, z_hi), max(z_lo, z_hi)
            for cz in range(math.floor((z_lo - eps) / cs), math.floor((z_hi + eps) / cs) + 1):
                yield cx, cz

    def _candidates(self, x, z, max_distance):
        """Feature indices, in insertion order, that may lie within range."""
        if self.cell_size is None or math.isinf(max_distance):
            return range(len(self._features))
        if not (math.isfinite(x) and math.isfinite(z) and max_distance >= 0):
            return ()

        cs = self.cell_size
        cx0, cx1 = math.floor((x - max_distance) / cs), math.floor((x + max_distance) / cs)
        cz0, cz1 = math.floor((z - max_distance) / cs), math.floor((z + max_distance) / cs)

        found = set()
        if (cx1 - cx0 + 1) * (cz1 - cz0 + 1) > len(self._buckets):
            # Search radius spans more cells than exist - walk the buckets
            for (cx, cz), ids in self._buckets.items():
                if cx0 <= cx <= cx1 and cz0 <= cz <= cz1:
                    found.update(ids)
        else:
            for cx in range(cx0, cx1 + 1):
                for cz in range(cz0, cz1 + 1):
                    ids = self._buckets.get((cx, cz))
                    if ids:
                        found.update(ids)
        return sorted(found)

    def find_nearest(self, x: float, y: float, z: float,
                     max_distance: float = math.inf,
                     type_filter=None) -> Optional[NearestResult]:
        """Nearest feature to (x, y, z) within ``max_distance`` (inclusive).

        Ties go to the feature inserted first. Returns None when nothing
        is in range.
        """
        p = (x, y, z)
        nearest = None
        best = math.inf
        for idx in self._candidates(x, z, max_distance):
            feature = self._features[idx]
            if type_filter is not None and feature.type != type_filter:
                continue
            dist, closest = point_to_polyline_distance(p, feature.points)
            if dist < best:
                best = dist
                nearest = NearestResult(feature.id, feature.type, dist, closest)

        if nearest is None or nearest.distance > max_distance:
            return None
        return nearest

    def find_within_distance(self, x: float, y: float, z: float,
                             max_distance: float, type_filter=None) -> list:
        """All features within ``max_distance``, nearest first."""
        p = (x, y, z)
        results = []
        for idx in self._candidates(x, z, max_distance):
            feature = self._features[idx]
            if type_filter is not None and feature.type != type_filter:
                continue
            dist, closest = point_to_polyline_distance(p, feature.points)
            if dist <= max_distance:
                results.append(NearestResult(feature.id, feature.type, dist, closest))

        # sort is stable, so equal distances keep insertion order
        results.sort(key=lambda r: r.distance)

        # multi-part features share an id; report each once, at its nearest part
        seen = set()
        unique = []
        for r in results:
            if (r.id, r.type) not in seen:
                seen.add((r.id, r.type))
                unique.append(r)
        return unique
