"""Tests for haversine distance helpers."""

import pytest

from core.geo import MISSING_LOCATION_KM, distance_km, photo_distance_km
from core.models import GeoCoordinate


def test_distance_same_point_is_zero():
    assert distance_km(46.8182, 8.2275, 46.8182, 8.2275) == 0.0


def test_distance_london_paris():
    # roughly 343 km on a 6371 km sphere
    assert distance_km(51.5074, -0.1278, 48.8566, 2.3522) == pytest.approx(343.5, abs=1.0)


def test_distance_is_symmetric():
    a = distance_km(43.8041, -120.5542, 51.5074, -0.1278)
    b = distance_km(51.5074, -0.1278, 43.8041, -120.5542)
    assert a == pytest.approx(b)


def test_quarter_meridian():
    # equator to pole is a quarter of the circumference
    assert distance_km(0, 0, 90, 0) == pytest.approx(3.141592653589793 * 6371 / 2)


def test_photo_distance_uses_sentinel_without_coordinates(make_photo):
    origin = GeoCoordinate(0.0, 0.0)
    assert photo_distance_km(make_photo("a"), origin) == MISSING_LOCATION_KM


def test_photo_distance_zero_coordinates_are_real(make_photo):
    origin = GeoCoordinate(0.0, 0.0)
    assert photo_distance_km(make_photo("a", lat=0.0, lng=0.0), origin) == 0.0
