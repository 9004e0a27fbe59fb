"""Data classes shared by the terrain, area and selection modules."""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from shapely.geometry import Polygon, box


class FeatureType(str, Enum):
    piste = "piste"
    lift = "lift"
    peak = "peak"
    place = "place"
    restaurant = "restaurant"


class Difficulty(str, Enum):
    blue = "blue"
    red = "red"
    black = "black"


@dataclass(frozen=True)
class GeoPoint:
    lat: float
    lon: float
    elevation: Optional[float] = None


@dataclass(frozen=True)
class GeoBounds:
    north: float
    south: float
    east: float
    west: float

    def __post_init__(self):
        if not (self.south < self.north and self.west < self.east):
            raise ValueError(
                f"Invalid bounds: N={self.north}, S={self.south}, "
                f"E={self.east}, W={self.west}")

    def contains(self, lat: float, lon: float) -> bool:
        """Check whether a lat/lon point falls inside the bounds (edges included)."""
        return (self.south <= lat <= self.north and
                self.west <= lon <= self.east)

    def to_polygon(self) -> Polygon:
        """Convert bounds to a shapely polygon in (lon, lat) order."""
        return box(self.west, self.south, self.east, self.north)


@dataclass(frozen=True)
class Region:
    name: str
    center: GeoPoint
    bounds: GeoBounds

    @classmethod
    def from_dict(cls, d):
        c = d['center']
        return cls(
            name=d['name'],
            center=GeoPoint(c['lat'], c['lon'], c.get('elevation', 0.0)),
            bounds=GeoBounds(**d['bounds']),
        )


@dataclass(frozen=True)
class SkiArea:
    """Lightweight area reference attached to features (no geometry)."""
    id: str
    name: str
    url: Optional[str] = None


@dataclass(frozen=True)
class AreaPolygon:
    """Named ski-area boundary. ``ring`` holds [lon, lat] vertices."""
    id: str
    name: str
    ring: tuple
    centroid: Optional[tuple] = None
    url: Optional[str] = None

    def __post_init__(self):
        ring = tuple((float(lon), float(lat)) for lon, lat in self.ring)
        if len(ring) < 3:
            raise ValueError(
                f"Area {self.id!r} ({self.name}): boundary ring needs at least "
                f"3 points, got {len(ring)}")
        if not all(math.isfinite(v) for pt in ring for v in pt):
            raise ValueError(f"Area {self.id!r} ({self.name}): non-finite coordinate in ring")
        object.__setattr__(self, 'ring', ring)
        if self.centroid is None:
            from .areas import polygon_centroid
            object.__setattr__(self, 'centroid', polygon_centroid(ring))
        else:
            object.__setattr__(self, 'centroid', tuple(self.centroid))

    def to_ski_area(self) -> SkiArea:
        return SkiArea(id=self.id, name=self.name, url=self.url)


@dataclass(frozen=True)
class RawSegment:
    """One OSM way of a piste, before fragments are merged."""
    id: str
    name: str
    difficulty: Difficulty
    coordinates: tuple
    ref: Optional[str] = None
    area: Optional[SkiArea] = None
    osm_way_id: Optional[int] = None

    def __post_init__(self):
        object.__setattr__(self, 'coordinates',
                           tuple((float(lon), float(lat)) for lon, lat in self.coordinates))
        object.__setattr__(self, 'difficulty', Difficulty(self.difficulty))

    @property
    def area_id(self) -> Optional[str]:
        return self.area.id if self.area is not None else None


@dataclass(frozen=True)
class MergedEntity:
    """A logical piste: every source way kept as its own segment."""
    id: str
    group_key: str
    name: str
    difficulty: Difficulty
    ref: Optional[str]
    segments: tuple
    total_length: float
    start_point: Optional[GeoPoint]
    end_point: Optional[GeoPoint]
    area: Optional[SkiArea] = None
    osm_way_ids: tuple = ()

    @property
    def coordinates(self):
        """All segments, for code paths that take multi-segment coordinates."""
        return self.segments


@dataclass(frozen=True)
class LiftStation:
    coordinates: GeoPoint
    name: Optional[str] = None


@dataclass(frozen=True)
class Lift:
    id: str
    name: str
    lift_type: str
    coordinates: tuple
    capacity: Optional[int] = None
    stations: tuple = ()
    area: Optional[SkiArea] = None

    def __post_init__(self):
        object.__setattr__(self, 'coordinates',
                           tuple((float(lon), float(lat)) for lon, lat in self.coordinates))


@dataclass(frozen=True)
class PointFeature:
    """Peak, village or restaurant: a single named location."""
    id: str
    name: str
    type: FeatureType
    lat: float
    lon: float
    elevation: Optional[float] = None
    area: Optional[SkiArea] = None
    tags: dict = field(default_factory=dict, compare=False)

    @property
    def coordinates(self):
        return ((self.lon, self.lat),)


@dataclass
class AssignmentStats:
    in_polygon: int = 0
    nearest_fallback: int = 0
    unassigned: int = 0

    @property
    def total(self) -> int:
        return self.in_polygon + self.nearest_fallback + self.unassigned
