"""
Example: Propagate a small built-in catalog without network access.

Uses a handful of element sets in the CelesTrak JSON record format,
including one record without TLE lines, to show batch propagation,
name filtering, render-space scaling and sky alignment.
"""

import sys
sys.path.insert(0, "src")

from datetime import datetime, timezone

from orbitsky.batch import filter_by_name, propagate_all, positions_to_dataframe
from orbitsky.coordinates import equatorial_to_cartesian, local_sidereal_time
from orbitsky.planets import Body, ObserverLocation, planet_positions
from orbitsky.propagator import ground_track, to_render_coordinates
from orbitsky.tle_parser import CatalogRecord, parse_catalog_record

CATALOG = [
    {
        "OBJECT_NAME": "ISS (ZARYA)",
        "NORAD_CAT_ID": 25544,
        "TLE_LINE1": "1 25544U 98067A   24358.50000000  .00010270  00000+0  18614-3 0  9996",
        "TLE_LINE2": "2 25544  51.6404 235.0395 0006278  47.0781 313.2490 15.50244706436153",
    },
    {
        "OBJECT_NAME": "STARLINK-1019",
        "NORAD_CAT_ID": 44713,
        "TLE_LINE1": "1 44713U 19071AU  24358.45639903  .00000747  00000+0  51849-4 0  9996",
        "TLE_LINE2": "2 44713  53.0537 140.3994 0001314  90.7235 269.4149 15.06402435234567",
    },
    {
        "OBJECT_NAME": "STARLINK-1020",
        "NORAD_CAT_ID": 44714,
        "TLE_LINE1": "1 44714U 19071AV  24358.51230000  .00001203  00000+0  82110-4 0  9990",
        "TLE_LINE2": "2 44714  53.0541 140.4102 0001450  85.1100 275.0020 15.06399871234560",
    },
    # Catalog entries without raw lines are dropped by propagate_all
    {"OBJECT_NAME": "NO-LINES DEBRIS", "NORAD_CAT_ID": 99999},
]

LONDON_LAT, LONDON_LON = 51.5072, -0.1276
SIRIUS_RA_H, SIRIUS_DEC = 6.7525, -16.7161


def main():
    print("=" * 65)
    print("  orbitsky — Offline Propagation Demo")
    print("=" * 65)

    when = datetime(2024, 12, 23, 18, 0, tzinfo=timezone.utc)
    records = [CatalogRecord.from_json(item) for item in CATALOG]

    positions = propagate_all(records, when)
    print(f"\nPropagated {len(positions)} of {len(records)} records to {when:%Y-%m-%d %H:%M} UTC\n")
    print(positions_to_dataframe(positions).round(3).to_string(index=False))

    starlink = filter_by_name(records, "starlink")
    print(f"\nStarlink records: {[r.object_name for r in starlink]}")

    print("\nRenderer coordinates (scale 10 per Earth radius):")
    for pos in positions:
        p = to_render_coordinates(pos)
        print(f"  {pos.name:16s} ({p.x:+7.3f}, {p.y:+7.3f}, {p.z:+7.3f})")

    lst = local_sidereal_time(when, LONDON_LON)
    sirius = equatorial_to_cartesian(SIRIUS_RA_H, SIRIUS_DEC)
    print(f"\nLST over London: {lst:.3f}° ({lst / 15.0:.3f} h)")
    print(f"Sirius on the 1000-unit sphere: ({sirius.x:.1f}, {sirius.y:.1f}, {sirius.z:.1f})")

    london = ObserverLocation(LONDON_LAT, LONDON_LON)
    print("\nPlanets over London:")
    for planet in planet_positions(when, london, [Body.MOON, Body.MARS, Body.JUPITER]):
        p = planet.to_cartesian()
        print(f"  {planet.name:8s} RA {planet.ra_hours:6.3f} h  Dec {planet.dec_deg:+7.3f}°  "
              f"-> ({p.x:+7.1f}, {p.y:+7.1f}, {p.z:+7.1f})")

    iss = parse_catalog_record(records[0])
    track = ground_track(iss, start=when, minutes=93, step_seconds=300)
    print(f"\nISS ground track ({len(track)} samples):")
    print(track[["time", "latitude_deg", "longitude_deg", "altitude_km"]].round(2).to_string(index=False))

    try:
        import matplotlib
        matplotlib.use("Agg")  # Non-interactive backend
        from orbitsky.viz import plot_ground_track

        plot_ground_track(track, title="ISS — Ground Track", save_path="data/iss_track.png")
        print("\nPlot saved to data/iss_track.png")
    except (ImportError, OSError) as e:
        print(f"\nSkipping plot: {e}")


if __name__ == "__main__":
    main()
