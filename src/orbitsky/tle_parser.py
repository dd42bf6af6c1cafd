"""TLE parsing into orbital element records.

Parses NORAD Two-Line Element sets, either as raw fixed-column text or
as the CelesTrak JSON record variant that carries the raw lines, into
immutable :class:`OrbitalElements` records for the propagator.

The fixed-column layout is kept in small column tables so the offsets
can be audited against the format documentation in one place.

References:
    - Kelso, T.S. "CelesTrak TLE Format Documentation"
      https://celestrak.org/columns/v04n03/
    - CelesTrak GP data formats
      https://celestrak.org/NORAD/documentation/gp-data-formats.php
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Mapping, NamedTuple, Optional, Union

logger = logging.getLogger(__name__)

# ── Physical constants ──

MU_EARTH = 398600.4418
"""Earth gravitational parameter (km³/s²)."""

EARTH_RADIUS_KM = 6371.0
"""Earth mean radius (km)."""

SOLAR_DAY = 86400.0
"""Seconds in a solar day."""

MINUTES_PER_DAY = 1440.0
"""Minutes in a solar day."""

TWO_PI = 2.0 * math.pi
"""2π constant."""

# ── Format constants ──

MIN_LINE_LENGTH = 69
"""Characters per TLE line, checksum digit included."""

MEAN_MOTION_RANGE = (10.0, 20.0)
"""Plausible mean motion (rev/day) for the primary column read."""

CENTURY_PIVOT = 70
"""Two-digit epoch years below this are 20xx, the rest 19xx."""

_NUMBER_RE = re.compile(r"[+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?")
_INTEGER_RE = re.compile(r"[+-]?\d+")


class TLEFormatError(ValueError):
    """Raw TLE lines are too short or a required field is unreadable."""


class MissingDataError(ValueError):
    """A catalog record does not carry its raw TLE lines."""


@dataclass(frozen=True, slots=True)
class RawElementSet:
    """An element set as published: name line plus the two data lines."""

    name: str
    line1: str
    line2: str


@dataclass(frozen=True, slots=True)
class OrbitalElements:
    """Mean orbital elements parsed from a TLE.

    Attributes:
        name: Object name.
        catalog_id: NORAD catalog number.
        epoch: Element set epoch (UTC).
        epoch_year: Full 4-digit epoch year.
        epoch_day: Fractional day of year at epoch (1.0 = Jan 1 00:00).
        mean_motion_dot: First derivative of mean motion / 2 (rev/day²).
        mean_motion_ddot: Second derivative of mean motion / 6 (rev/day³).
        drag_term: B* drag term (1/Earth radii).
        inclination_deg: Inclination (degrees).
        raan_deg: Right ascension of the ascending node (degrees).
        eccentricity: Eccentricity (dimensionless).
        arg_perigee_deg: Argument of perigee (degrees).
        mean_anomaly_deg: Mean anomaly at epoch (degrees).
        mean_motion_rev_per_day: Mean motion (revolutions per day).
        revolution_number: Revolution number at epoch.
    """

    name: str
    catalog_id: int
    epoch: datetime
    epoch_year: int
    epoch_day: float
    mean_motion_dot: float
    mean_motion_ddot: float
    drag_term: float
    inclination_deg: float
    raan_deg: float
    eccentricity: float
    arg_perigee_deg: float
    mean_anomaly_deg: float
    mean_motion_rev_per_day: float
    revolution_number: int

    @property
    def semi_major_axis_km(self) -> float:
        """Semi-major axis implied by the mean motion (km)."""
        if self.mean_motion_rev_per_day <= 0:
            return math.nan
        n_rad_s = self.mean_motion_rev_per_day * TWO_PI / SOLAR_DAY
        return (MU_EARTH / n_rad_s**2) ** (1.0 / 3.0)

    @property
    def period_minutes(self) -> float:
        """Orbital period (minutes)."""
        if self.mean_motion_rev_per_day <= 0:
            return math.nan
        return MINUTES_PER_DAY / self.mean_motion_rev_per_day

    @property
    def is_degenerate(self) -> bool:
        """True when the eccentricity does not describe an ellipse."""
        return not 0.0 <= self.eccentricity < 1.0

    def to_dict(self) -> dict:
        """Flat dictionary suitable for DataFrame construction."""
        return {
            "name": self.name,
            "catalog_id": self.catalog_id,
            "epoch": self.epoch,
            "inclination_deg": self.inclination_deg,
            "raan_deg": self.raan_deg,
            "eccentricity": self.eccentricity,
            "arg_perigee_deg": self.arg_perigee_deg,
            "mean_anomaly_deg": self.mean_anomaly_deg,
            "mean_motion_rev_day": self.mean_motion_rev_per_day,
            "mean_motion_dot": self.mean_motion_dot,
            "mean_motion_ddot": self.mean_motion_ddot,
            "bstar": self.drag_term,
            "rev_number": self.revolution_number,
            "sma_km": self.semi_major_axis_km,
            "period_min": self.period_minutes,
        }


@dataclass(slots=True)
class CatalogRecord:
    """One entry of a CelesTrak JSON (OMM) catalog response.

    Only ``object_name`` and the two raw lines are needed for parsing;
    the remaining mean elements are carried for callers that display
    them without propagating.
    """

    object_name: str
    norad_cat_id: int = 0
    epoch: Optional[str] = None
    mean_motion: Optional[float] = None
    eccentricity: Optional[float] = None
    inclination: Optional[float] = None
    ra_of_asc_node: Optional[float] = None
    arg_of_pericenter: Optional[float] = None
    mean_anomaly: Optional[float] = None
    tle_line1: Optional[str] = None
    tle_line2: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Mapping[str, Any]) -> CatalogRecord:
        """Build a record from the upper-case CelesTrak JSON keys.

        Raises:
            MissingDataError: If the entry is not a JSON object.
            TLEFormatError: If ``NORAD_CAT_ID`` is not an integer.
        """
        if not isinstance(payload, Mapping):
            raise MissingDataError(
                f"Catalog entry is not an object: {type(payload).__name__}"
            )

        name = str(payload.get("OBJECT_NAME") or "").strip()
        try:
            norad_cat_id = int(payload.get("NORAD_CAT_ID") or 0)
        except (TypeError, ValueError) as exc:
            raise TLEFormatError(
                f"Invalid NORAD_CAT_ID for {name or 'unnamed record'}: "
                f"{payload.get('NORAD_CAT_ID')!r}"
            ) from exc

        return cls(
            object_name=name,
            norad_cat_id=norad_cat_id,
            epoch=payload.get("EPOCH"),
            mean_motion=payload.get("MEAN_MOTION"),
            eccentricity=payload.get("ECCENTRICITY"),
            inclination=payload.get("INCLINATION"),
            ra_of_asc_node=payload.get("RA_OF_ASC_NODE"),
            arg_of_pericenter=payload.get("ARG_OF_PERICENTER"),
            mean_anomaly=payload.get("MEAN_ANOMALY"),
            tle_line1=payload.get("TLE_LINE1"),
            tle_line2=payload.get("TLE_LINE2"),
        )


# ── Field parsers ──


def _leading_float(text: str) -> Optional[float]:
    """Read the leading number of a field, ignoring trailing characters.

    Returns None when the field does not start with a number.
    """
    match = _NUMBER_RE.match(text.strip())
    return float(match.group()) if match else None


def _parse_float(text: str) -> float:
    value = _leading_float(text)
    if value is None:
        raise ValueError(f"not a number: {text!r}")
    return value


def _parse_int(text: str) -> int:
    match = _INTEGER_RE.match(text.strip())
    if not match:
        raise ValueError(f"not an integer: {text!r}")
    return int(match.group())


def _parse_optional_int(text: str) -> int:
    return _parse_int(text) if text.strip() else 0


def _parse_implied_decimal_point(text: str) -> float:
    """Parse a field with an implied leading ``0.`` (eccentricity)."""
    return _parse_float("0." + text.strip())


def _parse_exponent_field(text: str) -> float:
    """Parse TLE signed-exponent notation into a float.

    The field holds a 5-digit mantissa with an implied leading ``0.``
    followed by a ``[sign][digit]`` power of ten, optionally preceded by
    the value's own sign. ``" 18614-3"`` becomes ``0.18614e-3``.
    Absent or short fields read as 0.
    """
    field = text.strip()
    sign = 1.0
    if field[:1] in ("+", "-"):
        sign = -1.0 if field[0] == "-" else 1.0
        field = field[1:]

    if len(field) < 6:
        return 0.0

    mantissa, exponent = field[:5], field[5:]
    if len(exponent) < 2:
        return 0.0

    exp_sign = 1 if exponent[0] == "+" else -1
    power = exp_sign * _parse_int(exponent[1:])
    return sign * _parse_float("0." + mantissa) * 10.0**power


def _parse_mean_motion(text: str) -> float:
    value = _leading_float(text)
    return value if value is not None else 0.0


class _Column(NamedTuple):
    field: str
    start: int
    end: int
    parser: Callable[[str], Any]


_LINE1_COLUMNS: tuple[_Column, ...] = (
    _Column("catalog_id", 2, 7, _parse_int),
    _Column("epoch_year_2d", 18, 20, _parse_int),
    _Column("epoch_day", 20, 32, _parse_float),
    _Column("mean_motion_dot", 33, 43, _parse_float),
    _Column("mean_motion_ddot", 44, 52, _parse_exponent_field),
    _Column("drag_term", 54, 62, _parse_exponent_field),
)

_LINE2_COLUMNS: tuple[_Column, ...] = (
    _Column("inclination_deg", 8, 16, _parse_float),
    _Column("raan_deg", 17, 25, _parse_float),
    _Column("eccentricity", 26, 33, _parse_implied_decimal_point),
    _Column("arg_perigee_deg", 34, 42, _parse_float),
    _Column("mean_anomaly_deg", 43, 51, _parse_float),
    _Column("revolution_number", 63, 68, _parse_optional_int),
)

# Some emitters shift the mean motion one column to the right.
MEAN_MOTION_COLUMN = _Column("mean_motion_rev_per_day", 52, 63, _parse_mean_motion)
MEAN_MOTION_SKEWED_COLUMN = _Column("mean_motion_rev_per_day", 53, 64, _parse_mean_motion)


def _read_columns(line: str, columns: tuple[_Column, ...]) -> dict[str, Any]:
    values = {}
    for column in columns:
        raw = line[column.start:column.end]
        try:
            values[column.field] = column.parser(raw)
        except ValueError as exc:
            raise TLEFormatError(
                f"Unparseable {column.field} at columns "
                f"{column.start}-{column.end}: {raw!r}"
            ) from exc
    return values


def _read_mean_motion(line2: str) -> float:
    """Read mean motion, retrying one column to the right when implausible."""
    low, high = MEAN_MOTION_RANGE
    primary = MEAN_MOTION_COLUMN
    mean_motion = primary.parser(line2[primary.start:primary.end])

    if not mean_motion or not low <= mean_motion < high:
        skewed = MEAN_MOTION_SKEWED_COLUMN
        retry = skewed.parser(line2[skewed.start:skewed.end])
        logger.debug(
            "Mean motion %r outside [%g, %g), columns %d-%d give %r",
            mean_motion, low, high, skewed.start, skewed.end, retry,
        )
        mean_motion = retry

    if not mean_motion:
        raise TLEFormatError(f"Unparseable mean motion in line 2: {line2!r}")
    return mean_motion


def epoch_to_datetime(year: int, day_of_year: float) -> datetime:
    """Convert a TLE epoch (year + fractional day-of-year) to UTC.

    Args:
        year: Full 4-digit year.
        day_of_year: Fractional day of year (1.0 = midnight Jan 1).
    """
    jan1 = datetime(year, 1, 1, tzinfo=timezone.utc)
    return jan1 + timedelta(days=day_of_year - 1.0)


def full_epoch_year(two_digit_year: int) -> int:
    """Expand a 2-digit TLE epoch year."""
    if two_digit_year < CENTURY_PIVOT:
        return 2000 + two_digit_year
    return 1900 + two_digit_year


def verify_checksum(line: str, line_num: int) -> bool:
    """Check a TLE line's modulo-10 checksum.

    Logs a warning on mismatch rather than raising, since many catalog
    sources re-emit lines without recomputing the digit.

    Returns:
        False on a mismatch, True otherwise (including lines without a
        checksum digit).
    """
    if len(line) < MIN_LINE_LENGTH or not line[68].isdigit():
        return True

    expected = int(line[68])
    total = 0
    for ch in line[:68]:
        if ch.isdigit():
            total += int(ch)
        elif ch == "-":
            total += 1

    computed = total % 10
    if computed != expected:
        logger.warning(
            "Checksum mismatch on line %d: expected %d, computed %d",
            line_num,
            expected,
            computed,
        )
        return False
    return True


def parse_element_lines(name: str, line1: str, line2: str) -> OrbitalElements:
    """Parse a TLE from its two data lines.

    Args:
        name: Object name (line 0).
        line1: TLE line 1, at least 69 characters.
        line2: TLE line 2, at least 69 characters.

    Returns:
        Parsed orbital elements.

    Raises:
        TLEFormatError: If a line is too short or a required field
            cannot be read.
    """
    if len(line1) < MIN_LINE_LENGTH or len(line2) < MIN_LINE_LENGTH:
        raise TLEFormatError(
            f"Invalid TLE format: lines must be at least {MIN_LINE_LENGTH} "
            f"characters. Got {len(line1)} and {len(line2)}"
        )

    verify_checksum(line1, 1)
    verify_checksum(line2, 2)

    fields = _read_columns(line1, _LINE1_COLUMNS)
    fields.update(_read_columns(line2, _LINE2_COLUMNS))
    fields["mean_motion_rev_per_day"] = _read_mean_motion(line2)

    epoch_year = full_epoch_year(fields.pop("epoch_year_2d"))

    return OrbitalElements(
        name=name.strip(),
        epoch=epoch_to_datetime(epoch_year, fields["epoch_day"]),
        epoch_year=epoch_year,
        **fields,
    )


def parse_raw(raw: RawElementSet) -> OrbitalElements:
    """Parse a :class:`RawElementSet`."""
    return parse_element_lines(raw.name, raw.line1, raw.line2)


def parse_catalog_record(
    record: Union[CatalogRecord, Mapping[str, Any]],
) -> OrbitalElements:
    """Parse a CelesTrak JSON record through its raw TLE lines.

    Args:
        record: A :class:`CatalogRecord` or the raw JSON mapping.

    Raises:
        MissingDataError: If the record is not an object or lacks
            ``TLE_LINE1``/``TLE_LINE2``.
        TLEFormatError: If the lines are not text or are malformed.
    """
    if not isinstance(record, CatalogRecord):
        record = CatalogRecord.from_json(record)

    label = record.object_name or "unnamed record"
    if not record.tle_line1 or not record.tle_line2:
        raise MissingDataError(f"Missing TLE lines for {label}")

    if not isinstance(record.tle_line1, str) or not isinstance(record.tle_line2, str):
        raise TLEFormatError(
            f"TLE lines for {label} must be text, got "
            f"{type(record.tle_line1).__name__} and {type(record.tle_line2).__name__}"
        )

    return parse_element_lines(record.object_name, record.tle_line1, record.tle_line2)


def parse_batch(text: str) -> list[OrbitalElements]:
    """Parse multi-TLE text in 2-line or 3-line format.

    Detects per set whether a name line precedes the data lines. A bare
    2-line set is named after its catalog number. Malformed sets are
    logged and skipped.

    Args:
        text: One or more TLEs separated by newlines.

    Returns:
        Parsed element sets, in the order they appear.
    """
    lines = [line.rstrip() for line in text.strip().splitlines() if line.strip()]
    parsed: list[OrbitalElements] = []
    i = 0

    while i < len(lines):
        if (
            lines[i].startswith("1 ")
            and i + 1 < len(lines)
            and lines[i + 1].startswith("2 ")
        ):
            raw = RawElementSet(lines[i][2:7].strip(), lines[i], lines[i + 1])
            i += 2
        elif (
            i + 2 < len(lines)
            and lines[i + 1].startswith("1 ")
            and lines[i + 2].startswith("2 ")
        ):
            name = lines[i][2:] if lines[i].startswith("0 ") else lines[i]
            raw = RawElementSet(name, lines[i + 1], lines[i + 2])
            i += 3
        else:
            i += 1
            continue

        try:
            parsed.append(parse_raw(raw))
        except TLEFormatError as exc:
            logger.warning("Skipping element set %r: %s", raw.name, exc)

    return parsed
