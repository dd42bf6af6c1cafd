"""Tests for apparent Sun, Moon and planet positions."""
import math
from datetime import datetime, timezone

import pytest

from orbitsky.planets import (
    Body,
    ObserverLocation,
    PlanetPosition,
    planet_position,
    planet_positions,
)

J2000 = datetime(2000, 1, 1, 12, 0, tzinfo=timezone.utc)
GREENWICH = ObserverLocation(51.4769, -0.0005, 46.0)


class TestBody:
    @pytest.mark.parametrize("name", ["mars", "MARS", " Mars ", "Mars"])
    def test_parse_case_insensitive(self, name):
        assert Body.parse(name) is Body.MARS

    def test_parse_passes_through_members(self):
        assert Body.parse(Body.MOON) is Body.MOON

    @pytest.mark.parametrize("name", ["Earth", "Vulcan", "", "Sun2"])
    def test_parse_rejects_unknown(self, name):
        with pytest.raises(ValueError, match="Unknown body"):
            Body.parse(name)

    def test_supported_set(self):
        assert len(Body) == 10
        assert {b.value for b in Body} >= {"Sun", "Moon", "Mars", "Pluto"}


class TestObserverLocation:
    @pytest.mark.parametrize("lat", [-90.5, 91.0])
    def test_latitude_out_of_range(self, lat):
        with pytest.raises(ValueError, match="latitude_deg"):
            ObserverLocation(lat, 0.0)

    def test_default_altitude(self):
        assert ObserverLocation(10.0, 20.0).altitude_m == 0.0


class TestPlanetPosition:
    def test_sun_at_j2000(self):
        sun = planet_position(Body.SUN, J2000, GREENWICH)
        # Apparent Sun near the December solstice: RA ~18h45m, Dec ~-23°
        assert 18.6 < sun.ra_hours < 18.9
        assert -23.2 < sun.dec_deg < -22.8
        assert 0.98 < sun.dist_au < 0.99
        assert sun.name == "Sun"

    def test_moon_distance(self):
        moon = planet_position("moon", J2000, GREENWICH)
        assert 0.0023 < moon.dist_au < 0.0028

    def test_string_body_accepted(self):
        assert planet_position("Jupiter", J2000).body is Body.JUPITER

    def test_unknown_body_rejected(self):
        with pytest.raises(ValueError):
            planet_position("Nibiru", J2000, GREENWICH)

    def test_naive_time_is_utc(self):
        naive = datetime(2024, 8, 1, 21, 30)
        a = planet_position(Body.MARS, naive, GREENWICH)
        b = planet_position(Body.MARS, naive.replace(tzinfo=timezone.utc), GREENWICH)
        assert a == b

    def test_default_time_and_observer(self):
        pos = planet_position(Body.SATURN)
        assert isinstance(pos, PlanetPosition)
        assert 7.0 < pos.dist_au < 12.0

    def test_feeds_celestial_sphere(self):
        venus = planet_position(Body.VENUS, J2000, GREENWICH)
        p = venus.to_cartesian(500.0)
        assert math.isclose(math.hypot(p.x, p.y, p.z), 500.0, rel_tol=1e-12)

    def test_to_dict(self):
        d = planet_position(Body.MERCURY, J2000).to_dict()
        assert d["name"] == "Mercury"
        assert set(d) == {"name", "ra_hours", "dec_deg", "dist_au"}


class TestPlanetPositions:
    def test_all_bodies(self):
        positions = planet_positions(J2000, GREENWICH)
        assert [p.body for p in positions] == list(Body)
        for p in positions:
            assert 0.0 <= p.ra_hours < 24.0
            assert -90.0 <= p.dec_deg <= 90.0
            assert p.dist_au > 0.0

    def test_subset_keeps_order(self):
        positions = planet_positions(J2000, GREENWICH, ["neptune", Body.MARS])
        assert [p.name for p in positions] == ["Neptune", "Mars"]
