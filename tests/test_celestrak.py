"""Tests for the CelesTrak client and local catalog loaders.

Network access is replaced by a fake session that records every request.
"""
import os
import json
import time
import logging
from datetime import datetime, timezone

import pytest
import requests

from orbitsky.batch import filter_by_name, propagate_all
from orbitsky.celestrak import (
    DEFAULT_BASE_URL,
    CatalogResponseError,
    CelesTrakClient,
    load_catalog_file,
    load_tle_file,
)
from orbitsky.tle_parser import CatalogRecord

ISS_LINE1 = "1 25544U 98067A   24358.50000000  .00010270  00000+0  18614-3 0  9996"
ISS_LINE2 = "2 25544  51.6404  235.0395 0006278  47.0781  313.2490 15.50244706436153"
STARLINK_LINE1 = "1 44713U 19071AU  24358.45639903  .00000747  00000+0  51849-4 0  9996"
STARLINK_LINE2 = "2 44713  53.0537 140.3994 0001314  90.7235 269.4149 15.06402435234567"

CATALOG = [
    {
        "OBJECT_NAME": "ISS (ZARYA)",
        "NORAD_CAT_ID": 25544,
        "MEAN_MOTION": 15.50244706,
        "TLE_LINE1": ISS_LINE1,
        "TLE_LINE2": ISS_LINE2,
    },
    {
        "OBJECT_NAME": "STARLINK-1019",
        "NORAD_CAT_ID": 44713,
        "MEAN_MOTION": 15.06402435,
        "TLE_LINE1": STARLINK_LINE1,
        "TLE_LINE2": STARLINK_LINE2,
    },
    {"OBJECT_NAME": "NO-LINES DEBRIS", "NORAD_CAT_ID": 99999},
]


class FakeResponse:
    def __init__(self, text: str, status_code: int = 200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if not 200 <= self.status_code < 300:
            raise requests.HTTPError(f"{self.status_code} Error")


class FakeSession:
    def __init__(self, *responses: FakeResponse):
        self.responses = list(responses)
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        return self.responses.pop(0)


@pytest.fixture
def client_factory(tmp_path, monkeypatch):
    monkeypatch.delenv("ORBITSKY_CELESTRAK_URL", raising=False)
    monkeypatch.delenv("ORBITSKY_CACHE_DIR", raising=False)

    def make(*responses, **kwargs):
        session = FakeSession(*responses)
        kwargs.setdefault("cache_dir", tmp_path / "cache")
        return CelesTrakClient(session=session, **kwargs), session

    return make


class TestFetchGroup:
    def test_request_parameters(self, client_factory):
        client, session = client_factory(FakeResponse(json.dumps(CATALOG)), timeout=5.0)
        client.fetch_group("stations")
        assert session.calls == [{
            "url": DEFAULT_BASE_URL,
            "params": {"GROUP": "stations", "FORMAT": "json"},
            "timeout": 5.0,
        }]

    def test_records(self, client_factory):
        client, _ = client_factory(FakeResponse(json.dumps(CATALOG)))
        records = client.fetch_group("active")
        assert [r.object_name for r in records] == [
            "ISS (ZARYA)", "STARLINK-1019", "NO-LINES DEBRIS",
        ]
        assert records[0].norad_cat_id == 25544
        assert records[2].tle_line1 is None

    def test_http_error(self, client_factory):
        client, _ = client_factory(FakeResponse("Service Unavailable", status_code=503))
        with pytest.raises(requests.HTTPError):
            client.fetch_group("active")

    def test_malformed_json_not_cached(self, client_factory):
        client, _ = client_factory(FakeResponse("No GP data found"))
        with pytest.raises(ValueError):
            client.fetch_group("nonexistent")
        assert not client._cache_file("nonexistent", "json").exists()

    def test_non_array_payload(self, client_factory):
        client, _ = client_factory(FakeResponse(json.dumps({"error": "bad group"})))
        with pytest.raises(CatalogResponseError, match="Invalid CelesTrak response format"):
            client.fetch_group("active")

    def test_malformed_items_skipped_with_warning(self, client_factory, caplog):
        payload = [
            CATALOG[0],
            "garbage",
            None,
            {"OBJECT_NAME": "BAD ID", "NORAD_CAT_ID": [1]},
            CATALOG[1],
        ]
        client, _ = client_factory(FakeResponse(json.dumps(payload)))
        with caplog.at_level(logging.WARNING, logger="orbitsky.celestrak"):
            records = client.fetch_group("stations")
        assert [r.norad_cat_id for r in records] == [25544, 44713]
        skipped = [r for r in caplog.records if "Skipping catalog entry" in r.getMessage()]
        assert len(skipped) == 3
        assert "BAD ID" in caplog.text


class TestCache:
    def test_cache_hit(self, client_factory):
        client, session = client_factory(FakeResponse(json.dumps(CATALOG)))
        first = client.fetch_group("stations")
        second = client.fetch_group("stations")
        assert len(session.calls) == 1
        assert first == second

    def test_bypass_cache(self, client_factory):
        client, session = client_factory(
            FakeResponse(json.dumps(CATALOG)),
            FakeResponse(json.dumps(CATALOG[:1])),
        )
        client.fetch_group("stations")
        records = client.fetch_group("stations", use_cache=False)
        assert len(session.calls) == 2
        assert len(records) == 1

    def test_expired_cache(self, client_factory):
        client, session = client_factory(
            FakeResponse(json.dumps(CATALOG)),
            FakeResponse(json.dumps(CATALOG[:2])),
        )
        client.fetch_group("stations")
        cache_file = client._cache_file("stations", "json")
        stale = time.time() - 3 * 3600
        os.utime(cache_file, (stale, stale))
        assert len(client.fetch_group("stations")) == 2
        assert len(session.calls) == 2

    def test_cache_file_name_sanitized(self, client_factory):
        client, _ = client_factory()
        assert client._cache_file("GPS-OPS", "json").name == "gps-ops.json"
        assert client._cache_file("../x y", "tle").name == "___x_y.tle"


class TestConfiguration:
    def test_environment_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ORBITSKY_CELESTRAK_URL", "http://mirror.local/gp.php")
        monkeypatch.setenv("ORBITSKY_CACHE_DIR", str(tmp_path / "env-cache"))
        client = CelesTrakClient(session=FakeSession())
        assert client.base_url == "http://mirror.local/gp.php"
        assert client.cache_dir == tmp_path / "env-cache"

    def test_arguments_beat_environment(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ORBITSKY_CELESTRAK_URL", "http://mirror.local/gp.php")
        client = CelesTrakClient(
            base_url="http://other.local/gp.php",
            cache_dir=tmp_path,
            session=FakeSession(),
        )
        assert client.base_url == "http://other.local/gp.php"
        assert client.cache_dir == tmp_path


class TestTLEText:
    def test_fetch_group_tle(self, client_factory):
        text = f"ISS (ZARYA)\n{ISS_LINE1}\n{ISS_LINE2}\n"
        client, session = client_factory(FakeResponse(text))
        tles = client.fetch_group_tle("stations")
        assert session.calls[0]["params"] == {"GROUP": "stations", "FORMAT": "tle"}
        assert [t.catalog_id for t in tles] == [25544]

    def test_fetch_group_tle_empty(self, client_factory):
        client, _ = client_factory(FakeResponse("\n"))
        assert client.fetch_group_tle("empty") == []


class TestLocalFiles:
    def test_load_catalog_file(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text(json.dumps(CATALOG))
        records = load_catalog_file(path)
        assert all(isinstance(r, CatalogRecord) for r in records)
        assert records[1].tle_line2 == STARLINK_LINE2

    def test_load_catalog_file_rejects_object(self, tmp_path):
        path = tmp_path / "catalog.json"
        path.write_text("{}")
        with pytest.raises(CatalogResponseError):
            load_catalog_file(path)

    def test_load_tle_file(self, tmp_path):
        path = tmp_path / "stations.tle"
        path.write_text(
            f"ISS (ZARYA)\n{ISS_LINE1}\n{ISS_LINE2}\n"
            f"0 STARLINK-1019\n{STARLINK_LINE1}\n{STARLINK_LINE2}\n"
        )
        assert [t.name for t in load_tle_file(path)] == ["ISS (ZARYA)", "STARLINK-1019"]


class TestEndToEnd:
    def test_filter_then_propagate(self, client_factory):
        client, _ = client_factory(FakeResponse(json.dumps(CATALOG)))
        records = filter_by_name(client.fetch_group("active"), "starlink")
        positions = propagate_all(records, datetime(2024, 12, 24, tzinfo=timezone.utc))
        assert len(positions) == 1
        assert positions[0].catalog_id == 44713
        assert 400 < positions[0].altitude_km < 700

    def test_catalog_with_missing_lines(self, client_factory):
        client, _ = client_factory(FakeResponse(json.dumps(CATALOG)))
        positions = propagate_all(client.fetch_group("active"))
        assert [p.name for p in positions] == ["ISS (ZARYA)", "STARLINK-1019"]
