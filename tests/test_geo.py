import math

import pytest

from whereami.core.geo import Coordinate, distance_km, midpoint

TEL_AVIV = Coordinate(lat=32.0853, lon=34.7818)


def test_distance_is_zero_for_identical_points():
    assert distance_km(TEL_AVIV, TEL_AVIV) == 0
    assert distance_km(Coordinate(lat=32.0853, lon=34.7818), Coordinate(lat=32.0853, lon=34.7818)) == 0


@pytest.mark.parametrize(
    "a,b",
    [
        (TEL_AVIV, Coordinate(lat=51.5074, lon=-0.1278)),
        (Coordinate(lat=-33.8688, lon=151.2093), Coordinate(lat=40.7128, lon=-74.0060)),
        (Coordinate(lat=89.9, lon=0), Coordinate(lat=-89.9, lon=179.9)),
    ],
)
def test_distance_is_symmetric_and_positive(a, b):
    assert distance_km(a, b) == distance_km(b, a)
    assert distance_km(a, b) > 0


def test_quarter_great_circle_at_equator():
    # 2 * pi * 6371 / 4
    assert distance_km(Coordinate(lat=0, lon=0), Coordinate(lat=0, lon=90)) == pytest.approx(10007.54, abs=0.01)


def test_antipodal_points_are_half_the_circumference():
    d = distance_km(Coordinate(lat=0, lon=0), Coordinate(lat=0, lon=180))
    assert not math.isnan(d)
    assert d == pytest.approx(math.pi * 6371, rel=1e-9)


def test_known_city_pair_distance():
    # Tel Aviv -> Jerusalem is roughly 54 km as the crow flies.
    jerusalem = Coordinate(lat=31.7683, lon=35.2137)
    assert distance_km(TEL_AVIV, jerusalem) == pytest.approx(54, abs=2)


def test_midpoint_of_same_point_is_that_point():
    assert midpoint(TEL_AVIV, TEL_AVIV) == TEL_AVIV


def test_midpoint_is_component_wise_average():
    assert midpoint(Coordinate(lat=0, lon=0), Coordinate(lat=10, lon=20)) == Coordinate(lat=5, lon=10)


def test_midpoint_is_symmetric():
    a = Coordinate(lat=12.5, lon=-40.25)
    b = Coordinate(lat=-3.0, lon=100.0)
    assert midpoint(a, b) == midpoint(b, a)


def test_midpoint_is_planar_across_antimeridian():
    # Deliberately not geodesic: averaging 170 and -170 lands on the prime meridian.
    assert midpoint(Coordinate(lat=0, lon=170), Coordinate(lat=0, lon=-170)) == Coordinate(lat=0, lon=0)


@pytest.mark.parametrize("lat,lon", [(91, 0), (-90.5, 0), (0, 180.1), (0, -181), (float("nan"), 0)])
def test_coordinate_rejects_out_of_range_values(lat, lon):
    with pytest.raises(ValueError):
        Coordinate(lat=lat, lon=lon)


def test_coordinate_is_immutable():
    with pytest.raises(AttributeError):
        TEL_AVIV.lat = 0  # type: ignore[misc]
