"""Ski-data pipeline: thin orchestrator over the focused modules.

1. Assign ski areas to pistes, lifts and restaurants (point-in-polygon)
2. Merge fragmented piste segments
3. Project pistes and lifts onto the terrain and build the selection index

Every step is a pure function of its inputs. Rebuilds may run off the UI
thread; ``RebuildSequencer`` decides which finished result is current.
"""

import logging
from dataclasses import dataclass, field

from .areas import AreaAssigner
from .constants import HOME_AREA, DEFAULT_TERRAIN_OFFSET
from .elevation import ChunkElevationMap, ElevationGrid, project_points
from .merge import SegmentMerger
from .models import FeatureType
from .spatial_index import FeatureSpatialIndex

logger = logging.getLogger(__name__)


@dataclass
class ProcessedSkiData:
    pistes: list = field(default_factory=list)
    lifts: list = field(default_factory=list)
    areas: list = field(default_factory=list)
    peaks: list = field(default_factory=list)
    places: list = field(default_factory=list)
    restaurants: list = field(default_factory=list)
    stats: dict = field(default_factory=dict)


def process_ski_data(data, home_area=HOME_AREA) -> ProcessedSkiData:
    """Assign areas and merge pistes for one loaded SkiData."""
    assigner = AreaAssigner(data.areas)
    pistes, lifts, restaurants = assigner.assign_all(
        data.pistes, data.lifts, data.restaurants)

    merged = SegmentMerger(home_area=home_area).merge(pistes)

    return ProcessedSkiData(
        pistes=merged,
        lifts=lifts,
        areas=list(data.areas),
        peaks=list(data.peaks),
        places=list(data.places),
        restaurants=restaurants,
        stats=dict(assigner.stats),
    )


def _drape_fn(elevation, offset):
    """Return points -> terrain-projected points for a grid, chunk map or None."""
    if isinstance(elevation, ChunkElevationMap):
        return lambda pts: elevation.project_points(pts, offset)
    if isinstance(elevation, ElevationGrid):
        return lambda pts: project_points(elevation, pts, offset)
    if elevation is None:
        # no terrain yet: lay lines flat at the offset height
        return lambda pts: [(x, offset, z) for x, _y, z in pts]
    raise TypeError(f"Unsupported elevation source: {type(elevation).__name__}")


def build_feature_index(processed, projector, elevation=None,
                        offset=DEFAULT_TERRAIN_OFFSET, cell_size=None,
                        difficulties=None, include_lifts=True) -> FeatureSpatialIndex:
    """Build a fresh selection index for the currently visible features.

    difficulties: optional set of Difficulty values to include.
    A merged piste contributes one polyline per segment under its own id.
    """
    drape = _drape_fn(elevation, offset)
    index = FeatureSpatialIndex(cell_size=cell_size)

    n_pistes = 0
    for piste in processed.pistes:
        if difficulties is not None and piste.difficulty not in difficulties:
            continue
        for segment in piste.segments:
            if not segment:
                continue
            index.add_feature(piste.id, FeatureType.piste,
                              drape(projector.coords_to_local(segment)))
        n_pistes += 1

    n_lifts = 0
    if include_lifts:
        for lift in processed.lifts:
            if len(lift.coordinates) < 2:
                logger.debug(f"Lift {lift.id} has fewer than 2 points - not indexed")
                continue
            index.add_feature(lift.id, FeatureType.lift,
                              drape(projector.coords_to_local(lift.coordinates)))
            n_lifts += 1

    logger.info(f"Spatial index: {n_pistes} pistes, {n_lifts} lifts, "
                f"{len(index)} polylines")
    return index


class RebuildSequencer:
    """Last-write-wins bookkeeping for asynchronous rebuilds.

    Call ``begin()`` when a rebuild is requested and ``commit(token)`` when
    it finishes. A result is accepted only if no newer request has already
    been committed; stale results are discarded by the caller.
    """

    def __init__(self):
        self._issued = 0
        self._committed = 0

    @property
    def latest(self) -> int:
        """Token of the most recently committed rebuild (0 = none)."""
        return self._committed

    def begin(self) -> int:
        self._issued += 1
        return self._issued

    def commit(self, token: int) -> bool:
        if token > self._issued:
            raise ValueError(f"Unknown rebuild token {token}")
        if token <= self._committed:
            logger.debug(f"Discarding stale rebuild {token} "
                         f"(already have {self._committed})")
            return False
        self._committed = token
        return True
