"""Merge fragmented piste segments into logical pistes.

OSM often splits a single ski run into several ways. Ways that share an
area, an identifier (ref, else name) and a difficulty are treated as
fragments of one piste. Each fragment is kept as its own segment of the
merged entity; nothing is re-chained or re-ordered geometrically.
"""

import re
import logging
from collections import defaultdict

from .constants import HOME_AREA, UNKNOWN_AREA_SORT_KEY
from .coordinates import polyline_length
from .models import GeoPoint, MergedEntity

logger = logging.getLogger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


def group_key(segment) -> str:
    """Pistes with the same key are fragments of one logical piste."""
    area_id = segment.area_id or 'unknown'
    name = segment.name.lower().strip()
    ref = (segment.ref or '').lower().strip()
    # Use ref if available, otherwise name
    return f"{area_id}|{ref or name}|{segment.difficulty.value}"


def _member_order(segment):
    way = segment.osm_way_id
    return (way is None, way if way is not None else 0, str(segment.id))


def merge_group(segments, key=None):
    """Merge one group of fragments; returns None if no fragment has geometry.

    key: the shared group key; computed from the first member when omitted.
    """
    members = [s for s in sorted(segments, key=_member_order) if s.coordinates]
    dropped = len(segments) - len(members)
    if dropped:
        logger.warning(f"Dropped {dropped} piste segment(s) without coordinates")
    if not members:
        return None

    lengths = [polyline_length(s.coordinates) for s in members]

    # Start/end come from the longest fragment (first one on ties)
    longest = members[max(range(len(members)), key=lengths.__getitem__)]
    (lon0, lat0), (lon1, lat1) = longest.coordinates[0], longest.coordinates[-1]

    first = members[0]
    way_ids = tuple(s.osm_way_id if s.osm_way_id is not None else s.id
                    for s in members)
    if len(members) == 1:
        entity_id = first.id
    else:
        entity_id = "piste-merged-" + "-".join(str(w) for w in way_ids)

    return MergedEntity(
        id=entity_id,
        group_key=key if key is not None else group_key(first),
        name=first.name,
        difficulty=first.difficulty,
        ref=first.ref,
        segments=tuple(s.coordinates for s in members),
        total_length=sum(lengths),
        start_point=GeoPoint(lat0, lon0),
        end_point=GeoPoint(lat1, lon1),
        area=first.area,
        osm_way_ids=way_ids,
    )


def parse_ref(ref):
    """Leading integer of a piste ref ("12", "12a"), or None."""
    if not ref:
        return None
    m = _LEADING_INT.match(ref)
    return int(m.group(1)) if m else None


def sort_key(entity, home_area=HOME_AREA):
    """Total order: home area first, areas by name, unassigned last;
    then numeric refs ascending (ahead of pistes without one), then name.
    Difficulty and id break any remaining ties.
    """
    area_name = entity.area.name if entity.area is not None else None
    if home_area and area_name == home_area:
        area_rank = (0, "")
    else:
        area_rank = (1, area_name if area_name is not None else UNKNOWN_AREA_SORT_KEY)

    ref_num = parse_ref(entity.ref)
    ref_rank = (0, ref_num) if ref_num is not None else (1, 0)

    return (area_rank, ref_rank, entity.name.casefold(), entity.name,
            entity.difficulty.value, str(entity.id))


def group_segments(raw_segments) -> dict:
    groups = defaultdict(list)
    for segment in raw_segments:
        groups[group_key(segment)].append(segment)
    return dict(groups)


def merge_segments(raw_segments, home_area=HOME_AREA) -> list:
    """Group, merge and deterministically sort raw piste segments."""
    raw_segments = list(raw_segments)
    groups = group_segments(raw_segments)

    merged = []
    for key, members in groups.items():
        entity = merge_group(members, key)
        if entity is None:
            logger.debug(f"Group {key!r} has no geometry - skipped")
            continue
        merged.append(entity)

    merged.sort(key=lambda e: sort_key(e, home_area))
    logger.info(f"Merged {len(raw_segments)} piste segments into {len(merged)} pistes")
    return merged


class SegmentMerger:
    """Configured merger; ``home_area`` is pinned to the top of the output."""

    def __init__(self, home_area=HOME_AREA):
        self.home_area = home_area

    def merge(self, raw_segments) -> list:
        return merge_segments(raw_segments, home_area=self.home_area)
