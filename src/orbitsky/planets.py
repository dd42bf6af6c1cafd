"""Apparent positions of the Sun, Moon and planets.

Thin wrapper over ``astronomy-engine``: topocentric equatorial coordinates
of date, corrected for aberration, ready for
:func:`orbitsky.coordinates.equatorial_to_cartesian`.

Bodies are a closed :class:`Body` enumeration. Free-form names are
accepted only through :meth:`Body.parse`, which rejects anything outside
the supported set.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Optional, Union

import astronomy

from .coordinates import DEFAULT_SPHERE_RADIUS, CartesianCoords, as_utc, equatorial_to_cartesian

logger = logging.getLogger(__name__)


class Body(Enum):
    """Solar-system bodies with a supported position calculation."""

    SUN = "Sun"
    MOON = "Moon"
    MERCURY = "Mercury"
    VENUS = "Venus"
    MARS = "Mars"
    JUPITER = "Jupiter"
    SATURN = "Saturn"
    URANUS = "Uranus"
    NEPTUNE = "Neptune"
    PLUTO = "Pluto"

    @classmethod
    def parse(cls, name: Union[str, Body]) -> Body:
        """Resolve a case-insensitive body name.

        Raises:
            ValueError: If the name is not a supported body.
        """
        if isinstance(name, cls):
            return name
        key = str(name).strip().upper()
        try:
            return cls[key]
        except KeyError:
            supported = ", ".join(b.value for b in cls)
            raise ValueError(f"Unknown body {name!r}; expected one of {supported}") from None


@dataclass(frozen=True, slots=True)
class ObserverLocation:
    """Geodetic observer position.

    Attributes:
        latitude_deg: Latitude (degrees, north positive).
        longitude_deg: Longitude (degrees, east positive).
        altitude_m: Height above sea level (metres).
    """

    latitude_deg: float
    longitude_deg: float
    altitude_m: float = 0.0

    def __post_init__(self):
        if not -90.0 <= self.latitude_deg <= 90.0:
            raise ValueError(f"latitude_deg must be within [-90, 90], got {self.latitude_deg}")


@dataclass(frozen=True, slots=True)
class PlanetPosition:
    """Apparent equatorial position of a body.

    Attributes:
        body: The body.
        ra_hours: Right ascension of date (hours, [0, 24)).
        dec_deg: Declination of date (degrees).
        dist_au: Distance from the observer (AU).
    """

    body: Body
    ra_hours: float
    dec_deg: float
    dist_au: float

    @property
    def name(self) -> str:
        return self.body.value

    def to_cartesian(self, radius: float = DEFAULT_SPHERE_RADIUS) -> CartesianCoords:
        """Place the body on the celestial sphere."""
        return equatorial_to_cartesian(self.ra_hours, self.dec_deg, radius)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "ra_hours": self.ra_hours,
            "dec_deg": self.dec_deg,
            "dist_au": self.dist_au,
        }


def _astronomy_time(when: datetime) -> astronomy.Time:
    utc = as_utc(when)
    return astronomy.Time.Make(
        utc.year,
        utc.month,
        utc.day,
        utc.hour,
        utc.minute,
        utc.second + utc.microsecond / 1e6,
    )


def planet_position(
    body: Union[Body, str],
    when: Optional[datetime] = None,
    observer: Optional[ObserverLocation] = None,
) -> PlanetPosition:
    """Apparent topocentric RA/Dec of a body.

    Args:
        body: A :class:`Body` or its name.
        when: Time (naive datetimes are UTC). Defaults to now.
        observer: Observer location. Defaults to lat/lon 0 at sea level.

    Returns:
        Equatorial coordinates of date with aberration applied.

    Raises:
        ValueError: If ``body`` is not a supported body.
    """
    body = Body.parse(body)
    when = when if when is not None else datetime.now(timezone.utc)
    observer = observer or ObserverLocation(0.0, 0.0)

    site = astronomy.Observer(observer.latitude_deg, observer.longitude_deg, observer.altitude_m)
    equ = astronomy.Equator(
        astronomy.Body[body.value],
        _astronomy_time(when),
        site,
        True,   # ofdate
        True,   # aberration
    )
    logger.debug("%s: ra=%.4fh dec=%.4f° dist=%.6f AU", body.value, equ.ra, equ.dec, equ.dist)

    return PlanetPosition(body=body, ra_hours=equ.ra, dec_deg=equ.dec, dist_au=equ.dist)


def planet_positions(
    when: Optional[datetime] = None,
    observer: Optional[ObserverLocation] = None,
    bodies: Iterable[Union[Body, str]] = tuple(Body),
) -> list[PlanetPosition]:
    """Positions of several bodies at one shared time."""
    when = when if when is not None else datetime.now(timezone.utc)
    return [planet_position(b, when, observer) for b in bodies]
