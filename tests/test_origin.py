from dispatch_planner.models.domain import Coordinate, Facility, Warehouse
from dispatch_planner.services.routing import select_origin_warehouse
from dispatch_planner.services.routing.origin import facility_centroid


def _facility(fid: str, lat: float | None = None, lng: float | None = None) -> Facility:
    coordinate = Coordinate(lat, lng) if lat is not None and lng is not None else None
    return Facility(id=fid, name=f"Facility {fid}", coordinate=coordinate)


def _warehouse(wid: str, lat: float, lng: float) -> Warehouse:
    return Warehouse(id=wid, name=f"Warehouse {wid}", coordinate=Coordinate(lat, lng))


def test_centroid_ignores_facilities_without_coordinates():
    centroid = facility_centroid([_facility("F1", 0.0, 0.0), _facility("F2"), _facility("F3", 2.0, 4.0)])
    assert centroid == Coordinate(1.0, 2.0)
    assert facility_centroid([_facility("F1")]) is None


def test_selects_warehouse_nearest_the_centroid():
    facilities = [_facility("F1", 24.6, 46.6), _facility("F2", 24.8, 46.8), _facility("F3")]
    warehouses = [_warehouse("W-far", 21.5, 39.2), _warehouse("W-near", 24.71, 46.69)]

    assert select_origin_warehouse(facilities, warehouses).id == "W-near"


def test_nearest_facility_does_not_decide_alone():
    # W1 sits on F1 but the centroid is at (0, 2)
    facilities = [_facility("F1", 0.0, 0.0), _facility("F2", 0.0, 4.0)]
    warehouses = [_warehouse("W1", 0.0, 0.0), _warehouse("W2", 0.0, 2.5)]

    assert select_origin_warehouse(facilities, warehouses).id == "W2"


def test_equal_distances_go_to_smallest_warehouse_id():
    facilities = [_facility("F1", 0.0, 0.0)]
    warehouses = [_warehouse("WB", 0.0, 1.0), _warehouse("WA", 0.0, -1.0), _warehouse("WC", 1.0, 0.0)]

    assert select_origin_warehouse(facilities, warehouses).id == "WA"


def test_nothing_to_compare_returns_none():
    assert select_origin_warehouse([_facility("F1", 0.0, 0.0)], []) is None
    assert select_origin_warehouse([_facility("F1")], [_warehouse("W1", 0.0, 0.0)]) is None
    assert select_origin_warehouse([], [_warehouse("W1", 0.0, 0.0)]) is None
