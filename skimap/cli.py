"""Click CLI commands for skimap."""

import json
import logging
from collections import defaultdict

import click

from .coordinates import CoordinateProjector
from .features import load_feature_collection
from .constants import HOME_AREA, DEFAULT_REGION, DEFAULT_PICK_DISTANCE, DEFAULT_TERRAIN_OFFSET
from .models import Region
from .pipeline import build_feature_index, process_ski_data

logger = logging.getLogger(__name__)


@click.group()
def cli():
    """skimap CLI for inspecting ski-map terrain and feature data."""
    pass


@cli.command()
@click.argument('features_path', type=click.Path(exists=True, dir_okay=False))
@click.option('--home-area', default=HOME_AREA, help='Area listed first')
def summary(features_path: str, home_area: str):
    """Assign ski areas, merge pistes and print a per-area summary."""
    try:
        with open(features_path, encoding='utf-8') as f:
            collection = json.load(f)
        data = load_feature_collection(collection)
        processed = process_ski_data(data, home_area=home_area or None)
    except (OSError, ValueError) as e:
        logger.error(f"Error processing {features_path}: {e}")
        raise click.ClickException(str(e))

    by_area = defaultdict(list)
    for piste in processed.pistes:
        by_area[piste.area.name if piste.area else "(no area)"].append(piste)

    click.echo(f"\n{'='*50}")
    click.echo(f"{len(processed.pistes)} pistes, {len(processed.lifts)} lifts, "
               f"{len(processed.areas)} ski areas")
    for area_name, pistes in by_area.items():
        total_km = sum(p.total_length for p in pistes) / 1000
        click.echo(f"  {area_name}: {len(pistes)} pistes, {total_km:.1f} km")
        for p in pistes:
            ref = f"[{p.ref}] " if p.ref else ""
            click.echo(f"    {ref}{p.name} ({p.difficulty.value}) "
                       f"{p.total_length:.0f} m, {len(p.segments)} segment(s)")

    click.echo("\nArea assignment:")
    for label, stats in processed.stats.items():
        click.echo(f"  {label}: {stats.in_polygon} in polygon, "
                   f"{stats.nearest_fallback} nearest, {stats.unassigned} unassigned")
    click.echo(f"{'='*50}")


@cli.command()
@click.argument('lat', type=float)
@click.argument('lon', type=float)
@click.option('--elevation', '-e', default=0.0, help='Elevation in metres')
def locate(lat: float, lon: float, elevation: float):
    """Print local scene coordinates for LAT LON in the configured region."""
    region = Region.from_dict(DEFAULT_REGION)
    if not region.bounds.contains(lat, lon):
        logger.warning(f"({lat}, {lon}) is outside the {region.name} bounds - "
                       f"projection accuracy degrades with distance")
    projector = CoordinateProjector.from_region(region)
    x, y, z = projector.geo_to_local(lat, lon, elevation)
    click.echo(f"x={x:.2f} y={y:.2f} z={z:.2f}")


@cli.command()
@click.argument('features_path', type=click.Path(exists=True, dir_okay=False))
@click.argument('lat', type=float)
@click.argument('lon', type=float)
@click.option('--radius', '-r', default=DEFAULT_PICK_DISTANCE,
              help='Pick radius in scene units')
def pick(features_path: str, lat: float, lon: float, radius: float):
    """Report the piste or lift nearest to LAT LON (flat terrain)."""
    try:
        with open(features_path, encoding='utf-8') as f:
            collection = json.load(f)
        processed = process_ski_data(load_feature_collection(collection))
    except (OSError, ValueError) as e:
        logger.error(f"Error processing {features_path}: {e}")
        raise click.ClickException(str(e))

    projector = CoordinateProjector.default()
    index = build_feature_index(processed, projector)
    x, _, z = projector.geo_to_local(lat, lon)
    hit = index.find_nearest(x, DEFAULT_TERRAIN_OFFSET, z, max_distance=radius)
    if hit is None:
        click.echo(f"Nothing within {radius} units")
        return

    names = {p.id: p.name for p in processed.pistes}
    names.update((lift.id, lift.name) for lift in processed.lifts)
    click.echo(f"{hit.type.value} {hit.id} ({names.get(hit.id, '?')}) "
               f"at {hit.distance / projector.scale:.0f} m")


if __name__ == '__main__':
    cli()
