import pytest
from utils.geo import round_coordinate, round_coordinates, validate_coordinates


def test_example_coordinates_round_to_cache_key():
    assert round_coordinates(40.7128, -74.0060) == (40.71, -74.01)


@pytest.mark.parametrize("value", [40.7128, -74.0060, 0.0, 89.999, -179.995, 12.345678, 90.0, -180.0])
def test_rounding_is_idempotent(value):
    once = round_coordinate(value)
    assert round_coordinate(once) == once


def test_nearby_coordinates_share_a_key():
    assert round_coordinates(40.7128, -74.0060) == round_coordinates(40.7131, -74.0051)
    assert round_coordinates(40.7128, -74.0060) != round_coordinates(40.7178, -74.0060)


@pytest.mark.parametrize("lat,lon,valid", [
    (0, 0, True),
    (90, 180, True),
    (-90, -180, True),
    (90.01, 0, False),
    (0, -180.5, False),
    (float("nan"), 0, False),
    (0, float("inf"), False),
])
def test_validate_coordinates(lat, lon, valid):
    assert validate_coordinates(lat, lon) is valid


@pytest.mark.parametrize("value,expected", [
    (0.125, 0.13),
    (-0.125, -0.13),
    (2.675, 2.67),  # stored as 2.67499...
    (1.005, 1.0),   # stored as 1.00499...
    (-74.0060, -74.01),
])
def test_ties_round_half_away_from_zero(value, expected):
    assert round_coordinate(value) == expected
