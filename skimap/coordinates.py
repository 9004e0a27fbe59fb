"""Lat/lon ↔ local scene coordinates and great-circle helpers.

The projection is a flat-earth (equirectangular) approximation around a
fixed origin. It is accurate to well under a metre within a few kilometres
of the origin and degrades gracefully further out; there is no bounds
checking.

Scene axes: x = east, y = up (elevation), z = south (north is -z).
"""

import math
import logging

from .constants import SCALE, EARTH_RADIUS_M, DEFAULT_REGION
from .models import GeoPoint, Region

logger = logging.getLogger(__name__)

_DEG = math.pi / 180.0


class CoordinateProjector:
    def __init__(self, center_lat: float, center_lon: float,
                 center_elevation: float = 0.0, scale: float = SCALE):
        """
        center_lat, center_lon: the origin of the local frame.
        center_elevation: metres mapped to y = 0.
        scale: scene units per metre.
        """
        if scale <= 0:
            raise ValueError(f"scale must be positive, got {scale}")
        self.center_lat = center_lat
        self.center_lon = center_lon
        self.center_elevation = center_elevation
        self.scale = scale
        self._cos_lat = math.cos(center_lat * _DEG)

    @classmethod
    def from_region(cls, region: Region, scale: float = SCALE):
        c = region.center
        return cls(c.lat, c.lon, c.elevation or 0.0, scale=scale)

    @classmethod
    def default(cls):
        """Projector centred on the configured default region."""
        return cls.from_region(Region.from_dict(DEFAULT_REGION))

    def __repr__(self):
        return (f"CoordinateProjector(center=({self.center_lat}, {self.center_lon}), "
                f"elevation={self.center_elevation}, scale={self.scale})")

    def geo_to_local(self, lat: float, lon: float, elevation: float = 0.0) -> tuple:
        """Convert lat/lon/elevation to local (x, y, z)."""
        lat_m = (lat - self.center_lat) * _DEG * EARTH_RADIUS_M
        lon_m = (lon - self.center_lon) * _DEG * EARTH_RADIUS_M * self._cos_lat

        x = lon_m * self.scale
        y = (elevation - self.center_elevation) * self.scale
        z = -lat_m * self.scale
        return x, y, z

    def local_to_geo(self, x: float, y: float, z: float) -> GeoPoint:
        """Exact inverse of :meth:`geo_to_local`."""
        lon_m = x / self.scale
        lat_m = -z / self.scale
        elevation = y / self.scale + self.center_elevation

        d_lat = lat_m / EARTH_RADIUS_M
        d_lon = lon_m / (EARTH_RADIUS_M * self._cos_lat)
        return GeoPoint(
            lat=self.center_lat + d_lat / _DEG,
            lon=self.center_lon + d_lon / _DEG,
            elevation=elevation,
        )

    def coords_to_local(self, coordinates, elevation: float = 0.0) -> list:
        """Convert a sequence of [lon, lat] pairs to local points."""
        return [self.geo_to_local(lat, lon, elevation) for lon, lat in coordinates]

    def local_bounds(self, bounds) -> dict:
        """Project a GeoBounds into local min/max, centre and extent.

        Since north is -z, the north edge maps to min_z.
        """
        x1, _, z1 = self.geo_to_local(bounds.south, bounds.west)
        x2, _, z2 = self.geo_to_local(bounds.north, bounds.east)
        min_x, max_x = min(x1, x2), max(x1, x2)
        min_z, max_z = min(z1, z2), max(z1, z2)
        return {
            'min_x': min_x,
            'max_x': max_x,
            'min_z': min_z,
            'max_z': max_z,
            'center_x': (min_x + max_x) / 2,
            'center_z': (min_z + max_z) / 2,
            'width': max_x - min_x,
            'depth': max_z - min_z,
        }


# ── Great-circle helpers ─────────────────────────────────────────────────

def distance_meters(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two lat/lon points in metres."""
    d_lat = (lat2 - lat1) * _DEG
    d_lon = (lon2 - lon1) * _DEG
    a = (math.sin(d_lat / 2) ** 2 +
         math.cos(lat1 * _DEG) * math.cos(lat2 * _DEG) *
         math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def polyline_length(coordinates) -> float:
    """Length in metres of a [lon, lat] polyline."""
    length = 0.0
    for (lon1, lat1), (lon2, lat2) in zip(coordinates, coordinates[1:]):
        length += distance_meters(lat1, lon1, lat2, lon2)
    return length
