import json
from datetime import date, time

import pytest

from dispatch_planner.errors import InvalidCoordinate, WorkflowTransitionError
from dispatch_planner.models.domain import Coordinate, Facility, Tier, VehicleCapacity, Warehouse
from dispatch_planner.services.outputs.batch_formatter import batch_manifest_to_csv, batch_plan_to_record
from dispatch_planner.services.planning.plan import BatchPlan, BatchStatus


def _facility(fid: str, lat: float | None = None, lng: float | None = None) -> Facility:
    coordinate = Coordinate(lat, lng) if lat is not None and lng is not None else None
    return Facility(id=fid, name=f"Facility {fid}", coordinate=coordinate)


def _vehicle(*slots: int) -> VehicleCapacity:
    tiers = tuple(Tier(name=f"T{i + 1}", order=i + 1, slot_count=count) for i, count in enumerate(slots))
    return VehicleCapacity(vehicle_id="V1", tiers=tiers)


WAREHOUSE = Warehouse(id="W1", name="Central", coordinate=Coordinate(0.0, 0.0))


def _planned() -> BatchPlan:
    plan = BatchPlan(sequencing_strategy="nearest_neighbor")
    plan.set_vehicle(_vehicle(3, 2))
    plan.set_warehouse(WAREHOUSE)
    plan.set_facilities([_facility("F2", 0.0, 1.0), _facility("F3", 0.0, 2.0), _facility("F1", 1.0, 0.0)])
    return plan


def test_allocation_tracks_facility_count():
    plan = BatchPlan()
    plan.set_vehicle(_vehicle(3, 2))
    assert plan.allocation.required_slots == 0

    plan.add_facility(_facility("F1", 0.0, 1.0))
    plan.add_facility(_facility("F2"))
    assert plan.allocation.required_slots == 2

    plan.add_facility(_facility("F1", 0.0, 1.0))
    assert plan.allocation.required_slots == 2

    plan.remove_facility("F2")
    assert plan.allocation.required_slots == len(plan.facility_ids) == 1


def test_vehicle_without_tiers_has_no_allocation():
    plan = BatchPlan()
    plan.set_vehicle(VehicleCapacity(vehicle_id="V0"))
    plan.set_facilities([_facility(f"F{i}", 0.0, 0.1 * i) for i in range(1, 20)])

    assert plan.allocation is None
    assert not plan.has_overflow
    assert plan.slot_assignments == ()


def test_route_needs_vehicle_warehouse_and_coordinates():
    plan = BatchPlan()
    plan.set_facilities([_facility("F1", 0.0, 1.0)])
    plan.set_warehouse(WAREHOUSE)
    assert plan.route is None

    plan.set_vehicle(_vehicle(3))
    assert plan.route is not None
    assert plan.route.ordered_facility_ids == ("F1",)

    plan.set_warehouse(None)
    assert plan.route is None


def test_route_and_slots_follow_visiting_order():
    plan = _planned()

    assert plan.route.ordered_facility_ids == ("F1", "F2", "F3")
    assert [(item.slot_key, item.facility_id) for item in plan.slot_assignments] == [
        ("T1-1", "F1"),
        ("T1-2", "F2"),
        ("T1-3", "F3"),
    ]


def test_overflow_is_derived_state():
    plan = _planned()
    plan.set_vehicle(_vehicle(1, 1))
    assert plan.has_overflow
    assert plan.allocation.overflow_count == 1

    plan.remove_facility("F3")
    assert not plan.has_overflow


def test_skipped_facilities_stay_in_the_batch():
    plan = _planned()
    plan.add_facility(_facility("F9"))

    assert plan.route.skipped_facility_ids == ("F9",)
    assert plan.stop_order() == ("F1", "F2", "F3", "F9")
    assert "F9" in plan.facility_ids


def test_invalid_coordinates_are_rejected_on_input():
    plan = BatchPlan()
    with pytest.raises(InvalidCoordinate):
        plan.add_facility(_facility("F1", 95.0, 0.0))
    with pytest.raises(InvalidCoordinate):
        plan.set_warehouse(Warehouse(id="W", name="W", coordinate=Coordinate(0.0, 200.0)))
    assert plan.facility_ids == ()


def test_unknown_priority_is_rejected():
    plan = BatchPlan()
    with pytest.raises(ValueError):
        plan.set_priority("whenever")
    plan.set_priority("urgent")
    assert plan.priority == "urgent"


def test_frozen_plan_refuses_changes():
    plan = _planned()
    plan.freeze(BatchStatus.ASSIGNED)

    assert plan.is_frozen
    assert plan.status is BatchStatus.ASSIGNED
    with pytest.raises(WorkflowTransitionError):
        plan.add_facility(_facility("F4", 0.0, 3.0))
    with pytest.raises(WorkflowTransitionError):
        plan.set_notes("late edit")


def test_snapshot_is_json_serializable():
    plan = _planned()
    plan.set_schedule(date(2026, 10, 20), time(8, 30))
    plan.add_facility(_facility("F9"))

    snapshot = json.loads(json.dumps(plan.snapshot()))

    assert snapshot["scheduled_time"] == "08:30"
    assert snapshot["route"]["ordered_facility_ids"] == ["F1", "F2", "F3"]
    assert snapshot["allocation"]["required_slots"] == 4
    assert snapshot["frozen"] is False


def test_record_shape():
    plan = _planned()
    plan.set_schedule(date(2026, 10, 20), time(8, 30))
    plan.set_notes("Ring the bell")

    record = batch_plan_to_record(plan, status=BatchStatus.PLANNED)

    assert record["name"] == "Batch 2026-10-20"
    assert record["facility_ids"] == ["F1", "F2", "F3"]
    assert record["optimized_route"] == [[0.0, 0.0], [0.0, 1.0], [1.0, 0.0], [2.0, 0.0]]
    assert record["total_distance"] == pytest.approx(379.63, abs=0.05)
    assert isinstance(record["estimated_duration"], int)
    assert record["status"] == "planned"
    assert record["slot_assignments"]["T1-1"]["facility_id"] == "F1"
    assert record["notes"] == "Ring the bell"


def test_manifest_lists_every_stop():
    plan = _planned()
    plan.add_facility(_facility("F9"))

    lines = batch_manifest_to_csv(plan).strip().splitlines()

    assert lines[0].startswith("sequence,facility_id")
    assert [line.split(",")[1] for line in lines[1:]] == ["F1", "F2", "F3", "F9"]
    assert lines[-1].startswith(",F9,")
