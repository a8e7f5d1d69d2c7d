import math

import pytest

from dispatch_planner.errors import InvalidCoordinate
from dispatch_planner.models.domain import Coordinate
from dispatch_planner.services.geospatial import (
    EARTH_RADIUS_KM,
    distance_km,
    haversine_km,
    is_valid_coordinate,
    path_distance_km,
)

ONE_DEGREE_KM = EARTH_RADIUS_KM * math.pi / 180


def test_haversine_one_degree_along_equator_and_meridian():
    assert haversine_km(0.0, 0.0, 0.0, 1.0) == pytest.approx(ONE_DEGREE_KM)
    assert haversine_km(0.0, 0.0, 1.0, 0.0) == pytest.approx(ONE_DEGREE_KM)
    assert haversine_km(21.5, 39.2, 21.5, 39.2) == 0.0


def test_haversine_is_symmetric():
    riyadh = (24.7136, 46.6753)
    jeddah = (21.4858, 39.1925)
    forward = haversine_km(*riyadh, *jeddah)
    backward = haversine_km(*jeddah, *riyadh)
    assert forward == pytest.approx(backward)
    assert 840 < forward < 870


@pytest.mark.parametrize(
    "lat,lng",
    [(90.5, 0.0), (-91.0, 10.0), (0.0, 180.1), (0.0, -200.0), (float("nan"), 0.0)],
)
def test_out_of_range_coordinates_are_rejected(lat, lng):
    assert not is_valid_coordinate(lat, lng)
    with pytest.raises(InvalidCoordinate):
        distance_km(Coordinate(0.0, 0.0), Coordinate(lat, lng))


def test_invalid_coordinate_is_a_value_error():
    with pytest.raises(ValueError):
        distance_km(Coordinate(100.0, 0.0), Coordinate(0.0, 0.0))


def test_path_distance_sums_legs():
    points = [Coordinate(0.0, 0.0), Coordinate(0.0, 1.0), Coordinate(0.0, 2.0)]
    assert path_distance_km(points) == pytest.approx(2 * ONE_DEGREE_KM)
    assert path_distance_km(points[:1]) == 0.0
    assert path_distance_km([]) == 0.0


@pytest.mark.parametrize(
    "a,b",
    [
        (Coordinate(-82.0, -180.0), Coordinate(82.0, 0.0)),
        (Coordinate(10.0, 20.0), Coordinate(-10.0, -160.0)),
        (Coordinate(0.0, 0.0), Coordinate(0.0, 180.0)),
    ],
)
def test_antipodal_points_measure_half_the_circumference(a, b):
    assert distance_km(a, b) == pytest.approx(math.pi * EARTH_RADIUS_KM, abs=1e-3)


def test_sequencing_across_the_globe_does_not_fail():
    from dispatch_planner.models.domain import Facility
    from dispatch_planner.services.routing import sequence

    route = sequence(Coordinate(-82.0, -180.0), [Facility("F1", "F1", Coordinate(82.0, 0.0))])

    assert route.ordered_facility_ids == ("F1",)
    assert route.total_distance_km == pytest.approx(math.pi * EARTH_RADIUS_KM, abs=1e-3)
