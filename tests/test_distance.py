"""Unit tests for the Haversine distance calculation."""

import math

import pytest

from src.domain.distance import EARTH_RADIUS_KM, distance_km, haversine_km
from src.domain.entities import Coordinate

PODGORICA = Coordinate(42.4415, 19.2621)
NIKSIC = Coordinate(42.7731, 18.9447)


class TestHaversine:
    def test_same_point_is_zero(self):
        assert haversine_km(42.4415, 19.2621, 42.4415, 19.2621) == 0.0

    def test_podgorica_to_niksic(self):
        # ~45 km as the crow flies
        assert distance_km(PODGORICA, NIKSIC) == pytest.approx(44, abs=2)

    def test_symmetric(self):
        assert distance_km(PODGORICA, NIKSIC) == pytest.approx(
            distance_km(NIKSIC, PODGORICA)
        )

    def test_one_degree_of_latitude(self):
        expected = 2 * math.pi * EARTH_RADIUS_KM / 360
        assert haversine_km(0, 0, 1, 0) == pytest.approx(expected, rel=1e-9)

    def test_antipodes_are_half_the_circumference(self):
        d = haversine_km(0, 0, 0, 180)
        assert not math.isnan(d)
        assert d == pytest.approx(math.pi * EARTH_RADIUS_KM, rel=1e-9)

    def test_near_antipodal_is_finite(self):
        d = haversine_km(42.4415, 19.2621, -42.4415, -160.7379)
        assert math.isfinite(d)
        assert d <= math.pi * EARTH_RADIUS_KM + 1e-6

    def test_crossing_the_antimeridian(self):
        assert haversine_km(0, 179.5, 0, -179.5) == pytest.approx(
            haversine_km(0, 0, 0, 1), rel=1e-9
        )
