"""Simplified Kepler propagation of TLE mean elements.

Propagates an element set to an arbitrary time by advancing the mean
anomaly, solving Kepler's equation, and rotating the perifocal position
into the Earth-centred inertial (ECI) frame. This is a two-body model:
drag, J2 and the other SGP4 perturbations are deliberately left out, so
positions are good for sky visualisation, not for conjunction work.

Degenerate inputs never raise. An eccentricity outside [0, 1) returns a
sentinel position at the Earth's surface, and any NaN produced by
near-singular geometry is replaced by a safe default.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import numpy as np
import pandas as pd

from .coordinates import CartesianCoords, as_utc
from .tle_parser import (
    EARTH_RADIUS_KM,
    MINUTES_PER_DAY,
    MU_EARTH,
    SOLAR_DAY,
    TWO_PI,
    OrbitalElements,
)

logger = logging.getLogger(__name__)

KEPLER_MAX_ITER = 10
"""Newton-Raphson iteration cap for Kepler's equation."""

KEPLER_TOLERANCE = 1e-12
"""Convergence (and vanishing-derivative) threshold."""

DEFAULT_RENDER_SCALE = 10.0
"""Renderer units per Earth radius."""


@dataclass(frozen=True, slots=True)
class SatellitePosition:
    """Propagated state of one satellite at one instant.

    Attributes:
        name: Object name.
        catalog_id: NORAD catalog number.
        x: ECI x (km).
        y: ECI y (km).
        z: ECI z (km).
        latitude_deg: Sub-satellite latitude (degrees).
        longitude_deg: Sub-satellite longitude (degrees, [0, 360)).
        altitude_km: Height above the mean Earth radius (km).
        speed_km_s: Orbital speed (km/s).
    """

    name: str
    catalog_id: int
    x: float
    y: float
    z: float
    latitude_deg: float
    longitude_deg: float
    altitude_km: float
    speed_km_s: float

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "catalog_id": self.catalog_id,
            "x_km": self.x,
            "y_km": self.y,
            "z_km": self.z,
            "latitude_deg": self.latitude_deg,
            "longitude_deg": self.longitude_deg,
            "altitude_km": self.altitude_km,
            "speed_km_s": self.speed_km_s,
        }


def solve_kepler(
    mean_anomaly: float,
    eccentricity: float,
    max_iter: int = KEPLER_MAX_ITER,
    tol: float = KEPLER_TOLERANCE,
) -> float:
    """Solve ``E - e·sin(E) = M`` for the eccentric anomaly.

    Newton-Raphson seeded at ``E = M``. Stops early when the derivative
    vanishes or the step falls below ``tol``.
    """
    ecc_anomaly = mean_anomaly
    for _ in range(max_iter):
        f = ecc_anomaly - eccentricity * math.sin(ecc_anomaly) - mean_anomaly
        f_prime = 1.0 - eccentricity * math.cos(ecc_anomaly)

        if abs(f_prime) < tol:
            break

        step = f / f_prime
        ecc_anomaly -= step
        if abs(step) < tol:
            break

    return ecc_anomaly


def _sentinel_position(elements: OrbitalElements) -> SatellitePosition:
    return SatellitePosition(
        name=elements.name,
        catalog_id=elements.catalog_id,
        x=0.0,
        y=0.0,
        z=0.0,
        latitude_deg=0.0,
        longitude_deg=0.0,
        altitude_km=EARTH_RADIUS_KM,
        speed_km_s=0.0,
    )


def _nan_to(value: float, default: float) -> float:
    return default if math.isnan(value) else value


def propagate(
    elements: OrbitalElements,
    at: Optional[datetime] = None,
) -> SatellitePosition:
    """Propagate an element set to a given time.

    Args:
        elements: Parsed orbital elements.
        at: Target time (naive datetimes are UTC). Defaults to now.

    Returns:
        ECI position with sub-satellite point, altitude and speed.
    """
    at = as_utc(at) if at is not None else datetime.now(timezone.utc)
    minutes_since_epoch = (at - elements.epoch).total_seconds() / 60.0

    n = elements.mean_motion_rev_per_day
    ecc = elements.eccentricity

    # Degenerate orbit: not an ellipse, or no usable mean motion.
    if elements.is_degenerate or not (n > 0 and math.isfinite(n)):
        logger.debug(
            "Degenerate orbit for %s (e=%r, n=%r), returning sentinel",
            elements.name, ecc, n,
        )
        return _sentinel_position(elements)

    n_rad_min = n * TWO_PI / MINUTES_PER_DAY
    mean_anomaly = (
        math.radians(elements.mean_anomaly_deg) + n_rad_min * minutes_since_epoch
    ) % TWO_PI

    ecc_anomaly = solve_kepler(mean_anomaly, ecc)

    nu = 2.0 * math.atan2(
        math.sqrt(1.0 + ecc) * math.sin(ecc_anomaly / 2.0),
        math.sqrt(1.0 - ecc) * math.cos(ecc_anomaly / 2.0),
    )

    a = (MU_EARTH / (n * TWO_PI / SOLAR_DAY) ** 2) ** (1.0 / 3.0)
    r = a * (1.0 - ecc**2) / (1.0 + ecc * math.cos(nu))

    x_orb = r * math.cos(nu)
    y_orb = r * math.sin(nu)

    cos_raan = math.cos(math.radians(elements.raan_deg))
    sin_raan = math.sin(math.radians(elements.raan_deg))
    cos_argp = math.cos(math.radians(elements.arg_perigee_deg))
    sin_argp = math.sin(math.radians(elements.arg_perigee_deg))
    cos_inc = math.cos(math.radians(elements.inclination_deg))
    sin_inc = math.sin(math.radians(elements.inclination_deg))

    # Perifocal -> ECI (rotate by ω, then i, then Ω). z does not depend on Ω.
    x = (
        x_orb * (cos_argp * cos_raan - sin_argp * sin_raan * cos_inc)
        - y_orb * (sin_argp * cos_raan + cos_argp * sin_raan * cos_inc)
    )
    y = (
        x_orb * (cos_argp * sin_raan + sin_argp * cos_raan * cos_inc)
        - y_orb * (sin_argp * sin_raan - cos_argp * cos_raan * cos_inc)
    )
    z = x_orb * sin_argp * sin_inc + y_orb * cos_argp * sin_inc

    latitude = math.degrees(math.atan2(z, math.sqrt(x * x + y * y)))
    longitude = math.degrees(math.atan2(y, x)) % 360.0
    altitude = r - EARTH_RADIUS_KM

    speed_sq = 2.0 * MU_EARTH / r - MU_EARTH / a if r > 0 else math.nan
    speed = math.sqrt(speed_sq) if speed_sq >= 0 else math.nan

    return SatellitePosition(
        name=elements.name,
        catalog_id=elements.catalog_id,
        x=x,
        y=y,
        z=z,
        latitude_deg=_nan_to(latitude, 0.0),
        longitude_deg=_nan_to(longitude, 0.0),
        altitude_km=_nan_to(altitude, EARTH_RADIUS_KM),
        speed_km_s=_nan_to(speed, 0.0),
    )


def to_render_coordinates(
    position: SatellitePosition,
    scale: float = DEFAULT_RENDER_SCALE,
) -> CartesianCoords:
    """Scale ECI kilometres to renderer units.

    One Earth radius maps to ``scale`` units. The renderer is y-up, so
    the ECI y and z axes are swapped.
    """
    factor = scale / EARTH_RADIUS_KM
    return CartesianCoords(
        x=position.x * factor,
        y=position.z * factor,
        z=position.y * factor,
    )


def ground_track(
    elements: OrbitalElements,
    start: Optional[datetime] = None,
    minutes: float = 90.0,
    step_seconds: float = 60.0,
) -> pd.DataFrame:
    """Sample the sub-satellite track over a time window.

    Args:
        elements: Parsed orbital elements.
        start: Window start (naive datetimes are UTC). Defaults to now.
        minutes: Window length.
        step_seconds: Sample spacing.

    Returns:
        DataFrame with one row per sample: ``time``, ``latitude_deg``,
        ``longitude_deg``, ``altitude_km``, ``speed_km_s``.
    """
    if step_seconds <= 0:
        raise ValueError(f"step_seconds must be positive, got {step_seconds}")

    start = as_utc(start) if start is not None else datetime.now(timezone.utc)
    offsets = np.arange(0.0, minutes * 60.0 + step_seconds / 2.0, step_seconds)

    rows = []
    for offset in offsets:
        when = start + timedelta(seconds=float(offset))
        pos = propagate(elements, when)
        rows.append({
            "time": when,
            "latitude_deg": pos.latitude_deg,
            "longitude_deg": pos.longitude_deg,
            "altitude_km": pos.altitude_km,
            "speed_km_s": pos.speed_km_s,
        })

    return pd.DataFrame(
        rows,
        columns=["time", "latitude_deg", "longitude_deg", "altitude_km", "speed_km_s"],
    )
