"""Normalise OSM-tagged GeoJSON features into typed ski-map records.

Input is a GeoJSON FeatureCollection as produced by Overpass exports
(osmtogeojson and similar): each feature carries a geometry and its raw
OSM tags as properties. Output records use [lon, lat] coordinates and the
typed fields the rest of the package works with.
"""

import logging
from dataclasses import dataclass, field

from shapely.errors import ShapelyError
from shapely.geometry import shape, LineString, MultiLineString, Polygon, MultiPolygon, Point

from .models import (
    AreaPolygon, Difficulty, FeatureType, GeoPoint, Lift, LiftStation,
    PointFeature, RawSegment,
)

logger = logging.getLogger(__name__)

# OSM piste:difficulty → display colour
_DIFFICULTY = {
    'novice': Difficulty.blue,
    'easy': Difficulty.blue,
    'intermediate': Difficulty.red,
    'advanced': Difficulty.black,
    'expert': Difficulty.black,
    'freeride': Difficulty.black,
}

# OSM aerialway → display name
_LIFT_TYPES = {
    'gondola': 'Gondola',
    'chair_lift': 'Chair Lift',
    'cable_car': 'Cable Car',
    't-bar': 'T-Bar',
    'drag_lift': 'Drag Lift',
    'platter': 'Button Lift',
    'magic_carpet': 'Magic Carpet',
}

_PLACE_TYPES = frozenset({'town', 'village', 'hamlet'})
_RESTAURANT_AMENITIES = frozenset({'restaurant', 'cafe', 'bar', 'fast_food', 'pub'})


def parse_difficulty(osm_difficulty) -> Difficulty:
    """Map an OSM difficulty tag; unknown values default to blue."""
    return _DIFFICULTY.get((osm_difficulty or '').strip().lower(), Difficulty.blue)


def parse_lift_type(aerialway) -> str:
    return _LIFT_TYPES.get((aerialway or '').strip().lower(), 'Lift')


def _osm_id(feature):
    """Numeric OSM id from ``id`` / ``@id`` ("way/123" or 123), or None."""
    props = feature.get('properties') or {}
    raw = feature.get('id', props.get('@id', props.get('osm_id')))
    if raw is None:
        return None
    text = str(raw).rsplit('/', 1)[-1]
    try:
        return int(text)
    except ValueError:
        return None


def _geometry(feature):
    geom_dict = feature.get('geometry')
    if not geom_dict:
        raise ValueError(f"Feature {feature.get('id')!r} has no geometry")
    try:
        geom = shape(geom_dict)
    except (ShapelyError, TypeError, KeyError) as e:
        raise ValueError(f"Feature {feature.get('id')!r} has invalid geometry: {e}") from e
    if geom.is_empty:
        raise ValueError(f"Feature {feature.get('id')!r} has empty geometry")
    return geom


def _line_parts(geom):
    if isinstance(geom, LineString):
        return [geom]
    if isinstance(geom, MultiLineString):
        return list(geom.geoms)
    raise ValueError(f"Expected a line geometry, got {geom.geom_type}")


def _lonlat(coords):
    return tuple((float(c[0]), float(c[1])) for c in coords)


def pistes_from_feature(feature) -> list:
    """Raw segments for one piste feature (one per line part)."""
    tags = feature.get('properties') or {}
    osm_id = _osm_id(feature)
    parts = _line_parts(_geometry(feature))

    ref = tags.get('ref') or tags.get('piste:ref')
    name = (tags.get('name') or tags.get('piste:name') or ref or
            f"Piste {osm_id if osm_id is not None else feature.get('id')}")
    difficulty = parse_difficulty(tags.get('piste:difficulty'))

    segments = []
    for i, part in enumerate(parts):
        seg_id = f"piste-{osm_id}" if len(parts) == 1 else f"piste-{osm_id}-{i}"
        segments.append(RawSegment(
            id=seg_id,
            name=name,
            difficulty=difficulty,
            coordinates=_lonlat(part.coords),
            ref=ref,
            osm_way_id=osm_id,
        ))
    return segments


def lift_from_feature(feature) -> Lift:
    tags = feature.get('properties') or {}
    osm_id = _osm_id(feature)
    parts = _line_parts(_geometry(feature))
    coords = _lonlat(max(parts, key=lambda p: p.length).coords)
    if len(coords) < 2:
        raise ValueError(f"Lift {osm_id} has fewer than 2 points")

    lift_type = parse_lift_type(tags.get('aerialway'))
    capacity = None
    if tags.get('aerialway:capacity'):
        try:
            capacity = int(str(tags['aerialway:capacity']).strip())
        except ValueError:
            logger.debug(f"Lift {osm_id}: unparseable capacity "
                         f"{tags['aerialway:capacity']!r}")

    (lon0, lat0), (lon1, lat1) = coords[0], coords[-1]
    return Lift(
        id=f"lift-{osm_id}",
        name=tags.get('name') or f"{lift_type} {osm_id}",
        lift_type=lift_type,
        coordinates=coords,
        capacity=capacity,
        stations=(
            LiftStation(GeoPoint(lat0, lon0, 0.0), tags.get('aerialway:station:bottom')),
            LiftStation(GeoPoint(lat1, lon1, 0.0), tags.get('aerialway:station:top')),
        ),
    )


def area_from_feature(feature) -> AreaPolygon:
    """Ski-area boundary; a MultiPolygon uses its largest part's exterior."""
    tags = feature.get('properties') or {}
    geom = _geometry(feature)
    if isinstance(geom, MultiPolygon):
        geom = max(geom.geoms, key=lambda p: p.area)
    if not isinstance(geom, Polygon):
        raise ValueError(f"Expected a polygon for ski area, got {geom.geom_type}")

    ring = _lonlat(geom.exterior.coords)
    # shapely closes rings; drop the repeated vertex so the centroid is unbiased
    if len(ring) > 1 and ring[0] == ring[-1]:
        ring = ring[:-1]

    osm_id = _osm_id(feature)
    return AreaPolygon(
        id=f"skiarea-{osm_id}",
        name=tags.get('name') or f"Ski area {osm_id}",
        ring=ring,
        url=tags.get('website') or tags.get('url'),
    )


def point_from_feature(feature, feature_type: FeatureType) -> PointFeature:
    tags = feature.get('properties') or {}
    geom = _geometry(feature)
    if not isinstance(geom, Point):
        # restaurants are often mapped as building outlines
        geom = geom.representative_point()

    elevation = None
    if tags.get('ele'):
        try:
            elevation = float(str(tags['ele']).replace('m', '').strip())
        except ValueError:
            logger.debug(f"Unparseable ele {tags['ele']!r} on {feature.get('id')}")

    osm_id = _osm_id(feature)
    return PointFeature(
        id=f"{feature_type.value}-{osm_id}",
        name=tags.get('name') or '',
        type=feature_type,
        lat=geom.y,
        lon=geom.x,
        elevation=elevation,
        tags=dict(tags),
    )


@dataclass
class SkiData:
    pistes: list = field(default_factory=list)
    lifts: list = field(default_factory=list)
    areas: list = field(default_factory=list)
    peaks: list = field(default_factory=list)
    places: list = field(default_factory=list)
    restaurants: list = field(default_factory=list)
    skipped: int = 0


def classify(tags):
    """Which record kind a tag set describes, or None to ignore it."""
    if tags.get('landuse') == 'winter_sports' or tags.get('site') == 'piste':
        return 'area'
    if tags.get('piste:type') == 'downhill':
        return 'piste'
    if tags.get('aerialway') and tags.get('aerialway') not in ('station', 'pylon'):
        return 'lift'
    if tags.get('natural') == 'peak' and tags.get('name'):
        return 'peak'
    if tags.get('place') in _PLACE_TYPES and tags.get('name'):
        return 'place'
    if tags.get('amenity') in _RESTAURANT_AMENITIES:
        return 'restaurant'
    return None


def load_feature_collection(collection, bounds=None) -> SkiData:
    """Parse a GeoJSON FeatureCollection into SkiData.

    bounds: optional GeoBounds; features not intersecting it are dropped.
    Features with unusable geometry are logged and counted in ``skipped``.
    """
    if collection.get('type') != 'FeatureCollection':
        raise ValueError(f"Expected a FeatureCollection, got {collection.get('type')!r}")

    clip = bounds.to_polygon() if bounds is not None else None
    data = SkiData()

    for feature in collection.get('features', []):
        kind = classify(feature.get('properties') or {})
        if kind is None:
            continue
        try:
            if clip is not None and not clip.intersects(_geometry(feature)):
                continue
            if kind == 'piste':
                data.pistes.extend(pistes_from_feature(feature))
            elif kind == 'lift':
                data.lifts.append(lift_from_feature(feature))
            elif kind == 'area':
                data.areas.append(area_from_feature(feature))
            elif kind == 'peak':
                data.peaks.append(point_from_feature(feature, FeatureType.peak))
            elif kind == 'place':
                data.places.append(point_from_feature(feature, FeatureType.place))
            else:
                data.restaurants.append(point_from_feature(feature, FeatureType.restaurant))
        except ValueError as e:
            data.skipped += 1
            logger.warning(f"Skipping {kind} feature {feature.get('id')!r}: {e}")

    logger.info(f"Loaded {len(data.pistes)} piste segments, {len(data.lifts)} lifts, "
                f"{len(data.areas)} ski areas, {len(data.peaks)} peaks, "
                f"{len(data.places)} places, {len(data.restaurants)} restaurants "
                f"({data.skipped} skipped)")
    return data
