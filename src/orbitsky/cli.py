#!/usr/bin/env python3
"""orbitsky command-line interface.

Usage::

    orbitsky positions --group stations
    orbitsky positions --group active --name starlink --limit 200 -o starlink.csv
    orbitsky track --group stations --name "ISS (ZARYA)" --minutes 92 --plot iss.png
    orbitsky sky --lon -0.1276 --ra 6.75 --dec -16.7
    orbitsky planets --lat 51.48 --lon -0.0015 -b mars -b jupiter
"""
from __future__ import annotations

import sys
import logging
from datetime import datetime, timezone
from typing import Optional

import click
import requests
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich import box

from .batch import (
    filter_by_min_altitude,
    positions_to_dataframe,
    propagate_all,
    select_records,
)
from .celestrak import CelesTrakClient, load_catalog_file, load_tle_file
from .coordinates import (
    equatorial_to_cartesian,
    greenwich_mean_sidereal_time,
    local_sidereal_time,
)
from .planets import Body, ObserverLocation, planet_positions
from .propagator import SatellitePosition, ground_track, propagate
from .tle_parser import CatalogRecord, OrbitalElements, parse_catalog_record

console = Console()
logger = logging.getLogger(__name__)

_DATETIME_FORMATS = ["%Y-%m-%dT%H:%M:%S", "%Y-%m-%d %H:%M:%S", "%Y-%m-%d"]


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """orbitsky — satellite positions and sky alignment for AR stargazing."""
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s — %(message)s")


@main.command()
@click.option("--group", "-g", help="CelesTrak group (e.g. 'active', 'stations')")
@click.option("--file", "-f", "filepath", type=click.Path(exists=True),
              help="CelesTrak JSON catalog file")
@click.option("--name", "-n", help="Case-insensitive name filter (e.g. 'starlink')")
@click.option("--limit", "-l", type=int, help="Maximum number of satellites")
@click.option("--at", "at", type=click.DateTime(formats=_DATETIME_FORMATS),
              help="UTC time to propagate to (default: now)")
@click.option("--min-altitude", type=float, help="Drop positions below this altitude (km)")
@click.option("--output", "-o", type=click.Path(), help="Save positions to CSV")
@click.option("--plot", type=click.Path(), help="Save a renderer-space plot")
def positions(
    group: str | None,
    filepath: str | None,
    name: str | None,
    limit: int | None,
    at: datetime | None,
    min_altitude: float | None,
    output: str | None,
    plot: str | None,
):
    """Propagate a catalog and list satellite positions."""
    records = _load_records(group, filepath)
    records = select_records(records, name=name, limit=limit)

    at = at or datetime.now(timezone.utc)
    results = propagate_all(records, at)
    if min_altitude is not None:
        results = filter_by_min_altitude(results, min_altitude)

    if not results:
        console.print("[yellow]No satellites found.[/yellow]")
        return

    _display_positions(results, at, skipped=len(records) - len(results))

    if output:
        positions_to_dataframe(results).to_csv(output, index=False)
        console.print(f"\nPositions saved to {output}")

    if plot:
        from .viz import plot_render_points
        plot_render_points(results, save_path=plot)
        console.print(f"Plot saved to {plot}")


@main.command()
@click.option("--group", "-g", help="CelesTrak group (e.g. 'stations')")
@click.option("--file", "-f", "filepath", type=click.Path(exists=True),
              help="CelesTrak JSON catalog file")
@click.option("--tle-file", type=click.Path(exists=True), help="2/3-line TLE text file")
@click.option("--name", "-n", required=True, help="Satellite name (substring match)")
@click.option("--start", type=click.DateTime(formats=_DATETIME_FORMATS),
              help="UTC start time (default: now)")
@click.option("--minutes", "-m", default=90.0, help="Track length in minutes")
@click.option("--step", "-s", default=60.0, type=click.FloatRange(min=0, min_open=True),
              help="Sample spacing in seconds")
@click.option("--plot", type=click.Path(), help="Save a ground-track plot")
def track(
    group: str | None,
    filepath: str | None,
    tle_file: str | None,
    name: str,
    start: datetime | None,
    minutes: float,
    step: float,
    plot: str | None,
):
    """Sample the ground track of one satellite."""
    elements = _find_elements(group, filepath, tle_file, name)
    if elements is None:
        console.print(f"[yellow]No satellite matching '{name}'.[/yellow]")
        sys.exit(1)

    df = ground_track(elements, start=start, minutes=minutes, step_seconds=step)
    now = propagate(elements, start)

    console.print(
        Panel(
            f"[bold]{elements.name}[/bold] (NORAD {elements.catalog_id})\n"
            f"Epoch: {elements.epoch:%Y-%m-%d %H:%M:%S} UTC\n"
            f"Inclination: {elements.inclination_deg:.4f}°\n"
            f"Period: {elements.period_minutes:.2f} min\n"
            f"Altitude: {now.altitude_km:.1f} km, speed {now.speed_km_s:.3f} km/s\n"
            f"Samples: {len(df)}",
            title="Ground Track",
            box=box.ROUNDED,
        )
    )

    table = Table(box=box.SIMPLE_HEAVY)
    table.add_column("Time (UTC)", style="cyan")
    table.add_column("Lat (°)", justify="right")
    table.add_column("Lon (°)", justify="right")
    table.add_column("Alt (km)", justify="right")
    for _, row in df.head(20).iterrows():
        table.add_row(
            f"{row['time']:%H:%M:%S}",
            f"{row['latitude_deg']:+.3f}",
            f"{row['longitude_deg']:.3f}",
            f"{row['altitude_km']:.1f}",
        )
    if len(df) > 20:
        console.print(f"(showing 20 of {len(df)} samples)")
    console.print(table)

    if plot:
        from .viz import plot_ground_track
        plot_ground_track(df, title=f"{elements.name} — Ground Track", save_path=plot)
        console.print(f"Plot saved to {plot}")


@main.command()
@click.option("--lon", "longitude", type=float, required=True,
              help="Observer longitude (degrees, east positive)")
@click.option("--at", "at", type=click.DateTime(formats=_DATETIME_FORMATS),
              help="UTC time (default: now)")
@click.option("--ra", type=float, help="Right ascension (hours) to convert")
@click.option("--dec", type=float, help="Declination (degrees) to convert")
@click.option("--radius", default=1000.0, help="Celestial sphere radius")
def sky(
    longitude: float,
    at: datetime | None,
    ra: float | None,
    dec: float | None,
    radius: float,
):
    """Show sidereal time, and optionally place an RA/Dec on the sphere."""
    at = at or datetime.now(timezone.utc)
    gmst = greenwich_mean_sidereal_time(at)
    lst = local_sidereal_time(at, longitude)

    lines = [
        f"Time: {at:%Y-%m-%d %H:%M:%S} UTC",
        f"GMST: {gmst:.4f}° ({gmst / 15.0:.4f} h)",
        f"LST at {longitude:+.4f}°: {lst:.4f}° ({lst / 15.0:.4f} h)",
    ]
    if ra is not None and dec is not None:
        p = equatorial_to_cartesian(ra, dec, radius)
        lines.append(f"RA {ra:.4f} h, Dec {dec:+.4f}° → ({p.x:.3f}, {p.y:.3f}, {p.z:.3f})")

    console.print(Panel("\n".join(lines), title="Sky Alignment", box=box.ROUNDED))


@main.command()
@click.option("--lat", "latitude", type=click.FloatRange(-90.0, 90.0), required=True,
              help="Observer latitude (degrees, north positive)")
@click.option("--lon", "longitude", type=float, required=True,
              help="Observer longitude (degrees, east positive)")
@click.option("--elevation", default=0.0, help="Observer height above sea level (m)")
@click.option("--at", "at", type=click.DateTime(formats=_DATETIME_FORMATS),
              help="UTC time (default: now)")
@click.option("--body", "-b", "bodies", multiple=True,
              type=click.Choice([b.value for b in Body], case_sensitive=False),
              help="Body to include (repeatable, default: all)")
def planets(
    latitude: float,
    longitude: float,
    elevation: float,
    at: datetime | None,
    bodies: tuple[str, ...],
):
    """List apparent positions of the Sun, Moon and planets."""
    at = at or datetime.now(timezone.utc)
    observer = ObserverLocation(latitude, longitude, elevation)
    results = planet_positions(at, observer, bodies or tuple(Body))

    table = Table(title=f"{at:%Y-%m-%d %H:%M:%S} UTC", box=box.SIMPLE_HEAVY)
    table.add_column("Body", style="bold")
    table.add_column("RA (h)", justify="right")
    table.add_column("Dec (°)", justify="right")
    table.add_column("Dist (AU)", justify="right")
    for p in results:
        table.add_row(p.name, f"{p.ra_hours:.4f}", f"{p.dec_deg:+.4f}", f"{p.dist_au:.6f}")
    console.print(table)


def _load_records(group: str | None, filepath: str | None) -> list[CatalogRecord]:
    """Load catalog records from CelesTrak or a file, exiting on failure."""
    try:
        if filepath:
            records = load_catalog_file(filepath)
            console.print(f"Loaded {len(records)} records from {filepath}")
        elif group:
            console.print(f"Fetching CelesTrak group '{group}'...")
            records = CelesTrakClient().fetch_group(group)
            console.print(f"Fetched {len(records)} records")
        else:
            console.print("[red]Error: provide --group or --file[/red]")
            sys.exit(1)
    except (requests.RequestException, ValueError) as e:
        console.print(f"[red]Failed to load catalog: {e}[/red]")
        console.print("[yellow]No satellites found.[/yellow]")
        sys.exit(1)

    return records


def _find_elements(
    group: str | None,
    filepath: str | None,
    tle_file: str | None,
    name: str,
) -> Optional[OrbitalElements]:
    """Resolve the first element set whose name contains ``name``."""
    if tle_file:
        needle = name.upper()
        for elements in load_tle_file(tle_file):
            if needle in elements.name.upper():
                return elements
        return None

    for record in select_records(_load_records(group, filepath), name=name):
        try:
            return parse_catalog_record(record)
        except ValueError as e:
            logger.warning("Skipping %s: %s", record.object_name, e)
    return None


def _display_positions(
    results: list[SatellitePosition],
    at: datetime,
    skipped: int,
):
    """Display propagated positions with rich formatting."""
    console.print(
        Panel(
            f"Time: {at:%Y-%m-%d %H:%M:%S} UTC\n"
            f"Satellites: [bold green]{len(results)}[/bold green]\n"
            f"Skipped: {max(skipped, 0)}",
            title="Satellite Positions",
            box=box.ROUNDED,
        )
    )

    table = Table(box=box.SIMPLE_HEAVY, show_lines=False)
    table.add_column("Name", style="bold")
    table.add_column("NORAD", justify="right")
    table.add_column("Lat (°)", justify="right")
    table.add_column("Lon (°)", justify="right")
    table.add_column("Alt (km)", justify="right")
    table.add_column("Speed (km/s)", justify="right")

    for p in results[:50]:
        table.add_row(
            p.name,
            str(p.catalog_id),
            f"{p.latitude_deg:+.3f}",
            f"{p.longitude_deg:.3f}",
            f"{p.altitude_km:.1f}",
            f"{p.speed_km_s:.3f}",
        )

    if len(results) > 50:
        console.print(f"(showing 50 of {len(results)} satellites)")
    console.print(table)


if __name__ == "__main__":
    main()
