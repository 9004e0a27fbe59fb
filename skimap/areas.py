"""Spatial assignment of pistes, lifts and restaurants to ski areas.

Each feature is represented by its first coordinate. If that point lies
inside an area's boundary ring (ray casting, areas tested in input order)
the feature belongs to that area; otherwise it falls back to the area with
the nearest centroid. Distances are planar in lon/lat degrees, which is
adequate at the scale of a single ski region.
"""

import math
import logging
from dataclasses import dataclass, replace

from .models import AssignmentStats

logger = logging.getLogger(__name__)


def point_in_polygon(point, ring) -> bool:
    """Ray-casting containment test for a [lon, lat] point.

    Casts a ray along +x and counts edge crossings: odd means inside.
    Rings with fewer than 3 vertices contain nothing.
    """
    n = len(ring)
    if n < 3:
        return False

    x, y = point
    inside = False
    j = n - 1
    for i in range(n):
        xi, yi = ring[i]
        xj, yj = ring[j]
        if ((yi > y) != (yj > y)) and (x < (xj - xi) * (y - yi) / (yj - yi) + xi):
            inside = not inside
        j = i
    return inside


def polygon_centroid(ring) -> tuple:
    """Vertex mean of a ring; (0, 0) for an empty ring."""
    if not ring:
        return 0.0, 0.0
    n = len(ring)
    return (sum(p[0] for p in ring) / n, sum(p[1] for p in ring) / n)


def first_coordinate(coordinates):
    """First [lon, lat] of a flat or multi-segment coordinate list, or None."""
    if not coordinates:
        return None
    first = coordinates[0]
    if first is None or len(first) == 0:
        return None
    if isinstance(first[0], (list, tuple)):
        # multi-segment: [[lon, lat], ...] per segment
        return tuple(first[0]) if len(first[0]) else None
    return tuple(first)


def find_containing_area(point, polygons):
    """First area whose boundary contains ``point``, or None."""
    for area in polygons:
        if point_in_polygon(point, area.ring):
            return area
    return None


def find_nearest_area(point, polygons):
    """Area with the nearest centroid, or None when there are no areas."""
    nearest = None
    min_dist = math.inf
    x, y = point
    for area in polygons:
        cx, cy = area.centroid
        dist = math.hypot(cx - x, cy - y)
        if dist < min_dist:
            min_dist = dist
            nearest = area
    return nearest


@dataclass
class AssignmentResult:
    features: list
    stats: AssignmentStats


def assign_areas(features, polygons, label="features") -> AssignmentResult:
    """Return copies of ``features`` with ``area`` set, plus counts.

    Features must be dataclasses with ``coordinates`` and ``area`` fields
    (or a ``coordinates`` property). A feature without coordinates is
    returned unchanged and counted as unassigned.
    """
    stats = AssignmentStats()
    assigned = []

    for feature in features:
        point = first_coordinate(feature.coordinates)
        if point is None:
            stats.unassigned += 1
            logger.debug(f"{label}: {feature.id} has no coordinates - unassigned")
            assigned.append(feature)
            continue

        area = find_containing_area(point, polygons)
        if area is not None:
            stats.in_polygon += 1
        else:
            area = find_nearest_area(point, polygons)
            if area is not None:
                stats.nearest_fallback += 1
            else:
                stats.unassigned += 1

        if area is not None:
            assigned.append(replace(feature, area=area.to_ski_area()))
        else:
            assigned.append(feature)

    logger.info(f"Area assignment ({label}): {stats.in_polygon} in polygon, "
                f"{stats.nearest_fallback} nearest fallback, "
                f"{stats.unassigned} unassigned")
    return AssignmentResult(features=assigned, stats=stats)


class AreaAssigner:
    """Holds the area polygons for one data load and assigns feature sets."""

    def __init__(self, polygons):
        self.polygons = list(polygons)
        self.stats = {}

    def find_area(self, point):
        """Containing area, else nearest; None only when there are no areas."""
        return (find_containing_area(point, self.polygons) or
                find_nearest_area(point, self.polygons))

    def assign(self, features, label="features") -> list:
        result = assign_areas(features, self.polygons, label=label)
        self.stats[label] = result.stats
        return result.features

    def assign_all(self, pistes=(), lifts=(), restaurants=()):
        """Assign every feature kind; returns (pistes, lifts, restaurants)."""
        return (self.assign(pistes, "pistes"),
                self.assign(lifts, "lifts"),
                self.assign(restaurants, "restaurants"))
