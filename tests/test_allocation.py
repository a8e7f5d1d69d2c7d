import logging

import pytest

from dispatch_planner.errors import InvalidTierConfiguration
from dispatch_planner.models.domain import Tier, VehicleCapacity
from dispatch_planner.services.allocation import (
    allocate,
    assign_slots,
    utilization_status,
    validate_tier_config,
)


def _tier(name: str, order: int, slots: int, kg: float | None = None, m3: float | None = None) -> Tier:
    return Tier(name=name, order=order, slot_count=slots, capacity_kg=kg, capacity_m3=m3)


FRONT_REAR = [_tier("Front", 1, 3), _tier("Rear", 2, 2)]


def _per_tier(result):
    return [(item.tier_name, item.slots_in_tier, item.slots_allocated) for item in result.per_tier]


def test_fills_earlier_tiers_first():
    result = allocate(FRONT_REAR, 4)

    assert _per_tier(result) == [("Front", 3, 3), ("Rear", 2, 1)]
    assert result.total_slots == 5
    assert not result.is_overflow
    assert result.overflow_count == 0
    assert result.utilization_pct == 80
    assert result.utilization_status == "optimal"
    assert result.available_slots == 1


def test_overflow_is_reported_not_raised(caplog):
    with caplog.at_level(logging.WARNING):
        result = allocate(FRONT_REAR, 6)

    assert _per_tier(result) == [("Front", 3, 3), ("Rear", 2, 2)]
    assert result.is_overflow
    assert result.overflow_count == 1
    assert result.utilization_pct == 100
    assert result.utilization_status == "exceeded"
    assert "overflow" in caplog.text.lower()


def test_vehicle_without_tiers_skips_validation():
    result = allocate([], 10)

    assert result.total_slots == 0
    assert result.per_tier == ()
    assert not result.is_overflow
    assert result.overflow_count == 0
    assert result.utilization_pct == 0


def test_zero_required_slots_never_overflows():
    result = allocate(FRONT_REAR, 0)

    assert not result.is_overflow
    assert result.utilization_pct == 0
    assert result.allocated_slots == 0


def test_tiers_are_filled_by_order_not_input_position():
    result = allocate([_tier("Rear", 2, 2), _tier("Front", 1, 3)], 2)
    assert _per_tier(result) == [("Front", 3, 2), ("Rear", 2, 0)]


def test_duplicate_order_keeps_input_position(caplog):
    tiers = [_tier("B", 1, 1), _tier("A", 1, 1), _tier("C", 0, 1)]
    with caplog.at_level(logging.WARNING):
        result = allocate(tiers, 2)

    assert [item.tier_name for item in result.per_tier] == ["C", "B", "A"]
    assert _per_tier(result)[-1] == ("A", 1, 0)
    assert "more than once" in caplog.text


@pytest.mark.parametrize("required", range(0, 9))
def test_allocated_sum_matches_capacity_bound(required):
    result = allocate(FRONT_REAR, required)

    assert result.allocated_slots == min(required, result.total_slots)
    assert result.is_overflow == (required > result.total_slots)


def test_allocate_is_deterministic():
    assert allocate(FRONT_REAR, 4) == allocate(FRONT_REAR, 4)


def test_zero_slot_tiers_overflow_as_exceeded():
    result = allocate([_tier("Empty", 1, 0)], 1)
    assert result.is_overflow
    assert result.utilization_status == "exceeded"


def test_negative_values_are_rejected():
    with pytest.raises(InvalidTierConfiguration):
        allocate([_tier("Broken", 1, -1)], 1)
    with pytest.raises(InvalidTierConfiguration):
        allocate(FRONT_REAR, -1)


def test_utilization_status_thresholds():
    assert utilization_status(0) == "low"
    assert utilization_status(69) == "low"
    assert utilization_status(70) == "optimal"
    assert utilization_status(95) == "optimal"
    assert utilization_status(96) == "high"
    assert utilization_status(101) == "exceeded"


def test_utilization_rounds_half_up():
    # 1 of 8 slots is 12.5%
    assert allocate([_tier("Only", 1, 8)], 1).utilization_pct == 13


def test_assign_slots_uses_tier_slot_keys():
    assignments = assign_slots(FRONT_REAR, ["F1", "F2", "F3", "F4"])

    assert [item.slot_key for item in assignments] == ["Front-1", "Front-2", "Front-3", "Rear-1"]
    assert [item.facility_id for item in assignments] == ["F1", "F2", "F3", "F4"]
    assert assignments[-1].tier_order == 2


def test_assign_slots_leaves_overflowing_facilities_unassigned():
    assignments = assign_slots(FRONT_REAR, [f"F{i}" for i in range(7)])
    assert len(assignments) == 5
    assert "F5" not in {item.facility_id for item in assignments}


def test_validate_tier_config_accepts_consistent_vehicle():
    vehicle = VehicleCapacity(
        vehicle_id="V1",
        tiers=(_tier("Front", 1, 3, kg=500, m3=6), _tier("Rear", 2, 2, kg=500, m3=6)),
        volume_m3=12,
        max_weight_kg=1000,
    )
    result = validate_tier_config(vehicle)

    assert result.is_valid
    assert result.errors == []
    assert result.warnings == []
    assert result.total_weight_kg == 1000


def test_validate_tier_config_tolerance_band():
    within = VehicleCapacity("V1", tiers=(_tier("A", 1, 1, kg=1030),), max_weight_kg=1000)
    beyond = VehicleCapacity("V2", tiers=(_tier("A", 1, 1, kg=1100),), max_weight_kg=1000)

    within_result = validate_tier_config(within, tolerance_pct=5)
    beyond_result = validate_tier_config(beyond, tolerance_pct=5)

    assert within_result.is_valid
    assert len(within_result.warnings) == 1
    assert not beyond_result.is_valid
    assert "more than 5%" in beyond_result.errors[0]


def test_validate_tier_config_limits_and_unique_names():
    too_many = VehicleCapacity("V1", tiers=tuple(_tier(f"T{i}", i, 1) for i in range(11)))
    duplicated = VehicleCapacity("V2", tiers=(_tier("Front", 1, 1), _tier("front", 2, 1)))

    assert "Maximum 10 tiers allowed" in validate_tier_config(too_many, max_tiers=10).errors
    assert "Tier names must be unique" in validate_tier_config(duplicated).errors


def test_validate_tier_config_slot_count_range():
    vehicle = VehicleCapacity(
        "V1",
        tiers=(_tier("Lower", 1, 0), _tier("Middle", 2, 12), _tier("Upper", 3, 13), Tier("Roof", 4, 2.5)),
    )
    result = validate_tier_config(vehicle)

    assert not result.is_valid
    assert result.errors == [
        "Tier 1 (Lower): Minimum 1 slot required per tier",
        "Tier 3 (Upper): Maximum 12 slots allowed per tier",
        "Tier 4 (Roof): Slot count must be a whole number",
    ]


def test_validate_tier_config_honours_explicit_zero_tier_limit():
    vehicle = VehicleCapacity("V1", tiers=(_tier("Front", 1, 3),))
    assert validate_tier_config(vehicle, max_tiers=0).errors == ["Maximum 0 tiers allowed"]
