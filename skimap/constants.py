"""Configuration constants, environment overrides, and logging setup."""

import os
import logging

from dotenv import load_dotenv

# Load environment variables
load_dotenv()


def _env_float(name, default):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Ignoring {name}={raw!r}: not a number, using {default}")
        return default


# ── Scene scale ──────────────────────────────────────────────────────────
# 1 scene unit = 10 metres
SCALE = 0.1

# Mean Earth radius in metres (haversine and the flat-earth projection)
EARTH_RADIUS_M = 6_371_000.0

# ── Default region (Sölden, incl. Rettenbach & Tiefenbach glaciers) ─────
DEFAULT_REGION = {
    'name': 'Sölden',
    'center': {
        'lat': _env_float("SKIMAP_CENTER_LAT", 46.9147),
        'lon': _env_float("SKIMAP_CENTER_LON", 10.9975),
        'elevation': _env_float("SKIMAP_CENTER_ELEVATION", 2284.0),
    },
    'bounds': {
        'north': 47.01,
        'south': 46.84,
        'east': 11.2,
        'west': 10.86,
    },
}

# Area pinned to the top of sorted piste lists ("" disables pinning)
HOME_AREA = os.environ.get("SKIMAP_HOME_AREA", DEFAULT_REGION['name']).strip() or None

# ── Terrain sampling ─────────────────────────────────────────────────────
# Chunk edge length in scene units (500 units = 5 km)
DEFAULT_CHUNK_SIZE = _env_float("SKIMAP_CHUNK_SIZE", 500.0)

# Height returned for points outside every loaded grid
OUT_OF_BOUNDS_ELEVATION = 0.0

# Lines are drawn this many scene units above the terrain surface
DEFAULT_TERRAIN_OFFSET = 2.0

# Slack allowed when checking that a chunk grid starts at key * chunk_size
CHUNK_ALIGNMENT_TOLERANCE = 1e-6

# ── Feature selection ────────────────────────────────────────────────────
# Hover/click pick radius in scene units
DEFAULT_PICK_DISTANCE = 15.0

# Sort key used for features with no assigned area (sorts after real names)
UNKNOWN_AREA_SORT_KEY = "\uffff"

# Configure logging
logging.basicConfig(
    level=os.environ.get("SKIMAP_LOG_LEVEL", "INFO").upper(),
    format='%(asctime)s - %(levelname)s - %(message)s',
)
