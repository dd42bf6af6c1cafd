"""orbitsky — orbital mechanics and sky alignment for AR stargazing.

Parses published Two-Line Element (TLE) sets, propagates them with a
simplified Kepler model, and converts celestial and orbital positions
into the Cartesian frame used by the AR renderer.

Modules:
    coordinates:    RA/Dec to Cartesian conversion and sidereal time.
    planets:        Apparent Sun, Moon and planet positions (astronomy-engine).
    tle_parser:     Parse TLE text and CelesTrak JSON records.
    propagator:     Kepler propagation, render-space scaling, ground tracks.
    batch:          Batch propagation and catalog filtering.
    celestrak:      CelesTrak GP catalog client with disk caching.
    viz:            Quick-look plots of ground tracks and render points.
    cli:            Command-line interface.

Example:
    >>> from orbitsky.celestrak import CelesTrakClient
    >>> from orbitsky.batch import filter_by_name, propagate_all
    >>>
    >>> records = CelesTrakClient().fetch_group("active")
    >>> for pos in propagate_all(filter_by_name(records, "starlink")):
    ...     print(pos.name, pos.altitude_km)
"""

__version__ = "0.1.0"
