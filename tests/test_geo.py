import pytest

from multistop.errors import ValidationError
from multistop.geo import Coordinate, great_circle_meters


def test_parse_accepts_numeric_strings():
    assert Coordinate.parse("51.504", "-0.112869") == Coordinate(51.504, -0.112869)


@pytest.mark.parametrize(
    ("latitude", "longitude"),
    [("abc", 0), (float("nan"), 0), (None, 0), (0, "x"), (90.01, 0), (True, 0)],
)
def test_parse_rejects_malformed_input(latitude, longitude):
    with pytest.raises(ValidationError):
        Coordinate.parse(latitude, longitude)


def test_latitude_bounds_are_inclusive():
    assert Coordinate(90, 0).is_valid
    assert Coordinate(-90, 0).is_valid
    assert not Coordinate(-90.0001, 0).is_valid


def test_longitude_is_unbounded():
    assert Coordinate(45, 200).is_valid


def test_lon_lat_round_trip():
    point = Coordinate(51.5, -0.1)
    assert Coordinate.from_lon_lat(point.as_lon_lat()) == point


def test_great_circle_meters_one_degree_of_latitude():
    assert great_circle_meters(0, 0, 1, 0) == pytest.approx(111_195, rel=1e-3)
