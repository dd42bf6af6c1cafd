"""Celestial coordinate conversion and sidereal time.

Maps equatorial coordinates (right ascension, declination) onto a
Cartesian sphere for the renderer, and computes the sidereal time used
to rotate that sphere into an observer's local sky.

Axis convention:
    - x: vernal equinox (RA = 0h, Dec = 0°)
    - y: north celestial pole (Dec = +90°)
    - z: RA = 6h, Dec = 0°

References:
    - Meeus, J. (1998). Astronomical Algorithms, ch. 12.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timezone

import numpy as np

# ── Time constants ──

UNIX_EPOCH_JD = 2440587.5
"""Julian Date of 1970-01-01T00:00:00Z."""

J2000_JD = 2451545.0
"""Julian Date of the J2000.0 epoch."""

MS_PER_DAY = 86_400_000.0
"""Milliseconds in a day."""

GMST_AT_J2000 = 280.46061837
"""Greenwich mean sidereal angle at J2000.0 (degrees)."""

SIDEREAL_RATE = 360.98564736629
"""Sidereal rotation per solar day (degrees/day)."""

DEFAULT_SPHERE_RADIUS = 1000.0
"""Radius of the renderer's celestial sphere."""


@dataclass(frozen=True, slots=True)
class CartesianCoords:
    """A point in renderer space."""

    x: float
    y: float
    z: float

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


def equatorial_to_cartesian(
    ra_hours: float,
    dec_deg: float,
    radius: float = DEFAULT_SPHERE_RADIUS,
) -> CartesianCoords:
    """Project an equatorial position onto a sphere of the given radius.

    Args:
        ra_hours: Right ascension in hours. Values outside [0, 24) wrap.
        dec_deg: Declination in degrees.
        radius: Sphere radius.

    Returns:
        Cartesian point with ``|p| == radius``.
    """
    ra_rad = math.radians(ra_hours * 15.0)
    dec_rad = math.radians(dec_deg)
    cos_dec = math.cos(dec_rad)

    return CartesianCoords(
        x=radius * cos_dec * math.cos(ra_rad),
        y=radius * math.sin(dec_rad),
        z=radius * cos_dec * math.sin(ra_rad),
    )


def equatorial_to_cartesian_array(
    ra_hours,
    dec_deg,
    radius: float = DEFAULT_SPHERE_RADIUS,
) -> np.ndarray:
    """Vectorised :func:`equatorial_to_cartesian` for whole star catalogs.

    Args:
        ra_hours: Array-like of right ascensions (hours).
        dec_deg: Array-like of declinations (degrees), same shape.
        radius: Sphere radius.

    Returns:
        Array of shape ``(N, 3)`` holding x, y, z per star.
    """
    ra_rad = np.radians(np.asarray(ra_hours, dtype=float) * 15.0)
    dec_rad = np.radians(np.asarray(dec_deg, dtype=float))
    if ra_rad.shape != dec_rad.shape:
        raise ValueError(
            f"RA/Dec shape mismatch: {ra_rad.shape} vs {dec_rad.shape}"
        )

    cos_dec = np.cos(dec_rad)
    return np.column_stack(
        (
            radius * cos_dec * np.cos(ra_rad),
            radius * np.sin(dec_rad),
            radius * cos_dec * np.sin(ra_rad),
        )
    )


def julian_date(when: datetime) -> float:
    """Julian Date of a timestamp. Naive datetimes are taken as UTC."""
    unix_ms = as_utc(when).timestamp() * 1000.0
    return unix_ms / MS_PER_DAY + UNIX_EPOCH_JD


def greenwich_mean_sidereal_time(when: datetime) -> float:
    """Greenwich mean sidereal time in degrees, in [0, 360)."""
    gmst = GMST_AT_J2000 + SIDEREAL_RATE * (julian_date(when) - J2000_JD)
    return _wrap_degrees(gmst)


def local_sidereal_time(when: datetime, longitude_deg: float) -> float:
    """Local sidereal time in degrees, in [0, 360).

    Args:
        when: Observation time.
        longitude_deg: Observer longitude, east positive.
    """
    gmst = GMST_AT_J2000 + SIDEREAL_RATE * (julian_date(when) - J2000_JD)
    return _wrap_degrees(gmst + longitude_deg)


def _wrap_degrees(angle: float) -> float:
    wrapped = angle % 360.0
    # float modulo rounds tiny negatives up to exactly 360.0
    return 0.0 if wrapped >= 360.0 else wrapped


def as_utc(when: datetime) -> datetime:
    """Return ``when`` as an aware UTC datetime."""
    if when.tzinfo is None:
        return when.replace(tzinfo=timezone.utc)
    return when.astimezone(timezone.utc)
