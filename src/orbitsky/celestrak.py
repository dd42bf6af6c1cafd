"""CelesTrak GP catalog client.

Fetches element sets for a named CelesTrak group (``active``,
``stations``, ``starlink``, ``iridium``, ...) as JSON records or as TLE
text. Responses are cached on disk per group; CelesTrak republishes GP
data every few hours and asks clients not to poll faster than that.

Transport and payload failures are raised, never swallowed: non-2xx
responses raise ``requests.HTTPError``, malformed JSON raises
``json.JSONDecodeError`` (a ``ValueError``), and a payload that is
not a JSON array raises :class:`CatalogResponseError`.

Configuration, in order of precedence: constructor arguments, then the
``ORBITSKY_CELESTRAK_URL`` and ``ORBITSKY_CACHE_DIR`` environment
variables, then the module defaults.
"""

from __future__ import annotations

import os
import json
import time
import logging
from pathlib import Path
from typing import Any, Optional

import requests

from .tle_parser import CatalogRecord, OrbitalElements, parse_batch

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://celestrak.org/NORAD/elements/gp.php"
DEFAULT_CACHE_DIR = Path("data/cache")
DEFAULT_CACHE_TTL_HOURS = 2.0
DEFAULT_TIMEOUT = 30.0  # seconds


class CatalogResponseError(ValueError):
    """The catalog endpoint answered with something other than a JSON array."""


class CelesTrakClient:
    """Client for the CelesTrak GP query endpoint."""

    def __init__(
        self,
        base_url: Optional[str] = None,
        cache_dir: Optional[Path] = None,
        cache_ttl_hours: float = DEFAULT_CACHE_TTL_HOURS,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = base_url or os.environ.get(
            "ORBITSKY_CELESTRAK_URL", DEFAULT_BASE_URL
        )
        env_cache = os.environ.get("ORBITSKY_CACHE_DIR")
        self.cache_dir = Path(cache_dir or env_cache or DEFAULT_CACHE_DIR)
        self.cache_ttl_hours = cache_ttl_hours
        self.timeout = timeout
        self.session = session or requests.Session()

    def _cache_file(self, group: str, fmt: str) -> Path:
        key = "".join(c if c.isalnum() or c in "-_" else "_" for c in group.lower())
        return self.cache_dir / f"{key}.{fmt}"

    def _query(self, group: str, fmt: str, use_cache: bool = True) -> str:
        """Fetch one group in one format, with optional disk caching."""
        cache_file = self._cache_file(group, fmt)

        if use_cache and cache_file.exists():
            age_hours = (time.time() - cache_file.stat().st_mtime) / 3600
            if age_hours < self.cache_ttl_hours:
                logger.debug("Cache hit: %s", cache_file.name)
                return cache_file.read_text()

        params = {"GROUP": group, "FORMAT": fmt}
        logger.info("Querying %s %s", self.base_url, params)

        resp = self.session.get(self.base_url, params=params, timeout=self.timeout)
        resp.raise_for_status()

        if use_cache:
            cache_file.parent.mkdir(parents=True, exist_ok=True)
            cache_file.write_text(resp.text)

        return resp.text

    def fetch_group(self, group: str = "active", use_cache: bool = True) -> list[CatalogRecord]:
        """Fetch a group as JSON catalog records.

        Args:
            group: CelesTrak group name.
            use_cache: Serve a fresh-enough cached response if present.

        Returns:
            One :class:`CatalogRecord` per catalog entry, in response order.

        Raises:
            requests.HTTPError: On a non-2xx response.
            ValueError: On malformed JSON or a non-array payload.
        """
        raw = self._query(group, "json", use_cache=use_cache)
        try:
            return _records_from_payload(json.loads(raw))
        except ValueError:
            # never keep a cached body we cannot read
            self._cache_file(group, "json").unlink(missing_ok=True)
            raise

    def fetch_group_tle(self, group: str = "active", use_cache: bool = True) -> list[OrbitalElements]:
        """Fetch a group as 3-line TLE text and parse it."""
        raw = self._query(group, "tle", use_cache=use_cache)
        if not raw.strip():
            logger.warning("No element sets in group %r", group)
            return []
        return parse_batch(raw)


def _records_from_payload(payload: Any) -> list[CatalogRecord]:
    if not isinstance(payload, list):
        raise CatalogResponseError(
            f"Invalid CelesTrak response format: expected a JSON array, "
            f"got {type(payload).__name__}"
        )

    records: list[CatalogRecord] = []
    for index, item in enumerate(payload):
        try:
            records.append(CatalogRecord.from_json(item))
        except ValueError as e:
            logger.warning("Skipping catalog entry %d: %s", index, e)
    return records


def load_catalog_file(filepath: str | Path) -> list[CatalogRecord]:
    """Load CelesTrak JSON records saved to a local file."""
    return _records_from_payload(json.loads(Path(filepath).read_text()))


def load_tle_file(filepath: str | Path) -> list[OrbitalElements]:
    """Load element sets from a local 2-line or 3-line TLE file."""
    return parse_batch(Path(filepath).read_text())
