"""Batch propagation and catalog filtering.

Each record is handled independently: a record that fails to parse or
propagate is logged and dropped, so one malformed catalog entry never
empties the sky.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Iterable, Mapping, Optional, Union

import pandas as pd

from .coordinates import as_utc
from .propagator import SatellitePosition, propagate
from .tle_parser import CatalogRecord, parse_catalog_record

logger = logging.getLogger(__name__)

RecordLike = Union[CatalogRecord, Mapping[str, Any]]


def _record_name(record: Any) -> str:
    if isinstance(record, CatalogRecord):
        return record.object_name
    if isinstance(record, Mapping):
        return str(record.get("OBJECT_NAME") or "")
    return f"<{type(record).__name__}>"


def propagate_all(
    records: Iterable[RecordLike],
    at: Optional[datetime] = None,
) -> list[SatellitePosition]:
    """Parse and propagate every record, skipping the ones that fail.

    Args:
        records: Catalog records (or their raw JSON mappings).
        at: Common target time for all records. Defaults to now.

    Returns:
        Positions of the records that succeeded, in input order.
    """
    # shared target time for every record in the batch
    at = as_utc(at) if at is not None else datetime.now(timezone.utc)

    positions: list[SatellitePosition] = []
    for record in records:
        try:
            elements = parse_catalog_record(record)
            positions.append(propagate(elements, at))
        except (ValueError, ArithmeticError) as e:
            logger.warning(
                "Failed to calculate position for %s: %s", _record_name(record), e
            )

    return positions


def filter_by_name(records: Iterable[RecordLike], needle: str) -> list[RecordLike]:
    """Case-insensitive substring match on the object name.

    Args:
        records: Catalog records.
        needle: Constellation or object name fragment, e.g. ``"starlink"``.

    Returns:
        Matching records in input order (empty when nothing matches).
    """
    needle = needle.upper()
    return [r for r in records if needle in _record_name(r).upper()]


def select_records(
    records: Iterable[RecordLike],
    name: Optional[str] = None,
    limit: Optional[int] = None,
) -> list[RecordLike]:
    """Narrow a catalog by name fragment, then cap its size."""
    selected = filter_by_name(records, name) if name else list(records)
    if limit is not None and len(selected) > limit:
        logger.debug("Limiting %d records to %d", len(selected), limit)
        selected = selected[:limit]
    return selected


def filter_by_min_altitude(
    positions: Iterable[SatellitePosition],
    min_altitude_km: float,
) -> list[SatellitePosition]:
    """Keep positions at or above ``min_altitude_km``."""
    return [p for p in positions if p.altitude_km >= min_altitude_km]


def positions_to_dataframe(positions: Iterable[SatellitePosition]) -> pd.DataFrame:
    """Flatten positions into a DataFrame, one row per satellite."""
    rows = [p.to_dict() for p in positions]
    columns = [
        "name", "catalog_id", "x_km", "y_km", "z_km",
        "latitude_deg", "longitude_deg", "altitude_km", "speed_km_s",
    ]
    return pd.DataFrame(rows, columns=columns)
