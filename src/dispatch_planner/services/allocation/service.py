"""Greedy first-fit slot allocation across vehicle tiers."""

from __future__ import annotations

import logging
import math
from typing import Sequence

from ...config import settings
from ...errors import InvalidTierConfiguration
from ...models.domain import Tier, VehicleCapacity
from .models import (
    AllocationResult,
    SlotAssignment,
    TierAllocation,
    TierValidationResult,
    UtilizationStatus,
)

logger = logging.getLogger(__name__)

MIN_SLOT_COUNT = 1
MAX_SLOT_COUNT = 12


def _fill_order(tiers: Sequence[Tier]) -> list[Tier]:
    """Tiers sorted by ``order``; equal values keep their original position."""

    for tier in tiers:
        if tier.slot_count < 0:
            raise InvalidTierConfiguration(f"Tier '{tier.name}' has a negative slot count ({tier.slot_count}).")
    seen: set[int] = set()
    for tier in tiers:
        if tier.order in seen:
            logger.warning(
                "Tier order %s is used more than once; keeping original position for '%s'", tier.order, tier.name
            )
        seen.add(tier.order)
    # sorted() is stable
    return sorted(tiers, key=lambda tier: tier.order)


def _percent(required: int, total: int) -> int:
    if total <= 0:
        return 0
    # Half-up rounding, matching what the dashboard displays
    return int(math.floor(100 * required / total + 0.5))


def utilization_status(utilization_pct: float) -> UtilizationStatus:
    """Classify an uncapped utilization percentage."""

    if utilization_pct > 100:
        return "exceeded"
    if utilization_pct > 95:
        return "high"
    if utilization_pct >= 70:
        return "optimal"
    return "low"


def allocate(tiers: Sequence[Tier], required_slots: int) -> AllocationResult:
    """Distribute ``required_slots`` over ``tiers``, filling earlier tiers first.

    Overflow is reported on the result, never raised. A vehicle without tiers
    is unconfigured: the result carries zero slots and no overflow.
    """

    if required_slots < 0:
        raise InvalidTierConfiguration(f"required_slots must be >= 0, got {required_slots}.")

    ordered = _fill_order(tiers)
    total_slots = sum(tier.slot_count for tier in ordered)

    if not ordered:
        return AllocationResult(
            total_slots=0,
            required_slots=required_slots,
            per_tier=(),
            is_overflow=False,
            overflow_count=0,
            utilization_pct=0,
            utilization_status="low",
        )

    per_tier: list[TierAllocation] = []
    slots_before = 0
    for tier in ordered:
        remaining = max(0, required_slots - slots_before)
        per_tier.append(
            TierAllocation(
                tier_name=tier.name,
                slots_in_tier=tier.slot_count,
                slots_allocated=min(tier.slot_count, remaining),
            )
        )
        slots_before += tier.slot_count

    overflow_count = max(0, required_slots - total_slots)
    true_pct = _percent(required_slots, total_slots)
    if overflow_count:
        logger.warning("Slot overflow: %s required, %s available", required_slots, total_slots)

    return AllocationResult(
        total_slots=total_slots,
        required_slots=required_slots,
        per_tier=tuple(per_tier),
        is_overflow=required_slots > total_slots,
        overflow_count=overflow_count,
        utilization_pct=min(true_pct, 100),
        utilization_status="exceeded" if overflow_count else utilization_status(true_pct),
    )


def assign_slots(tiers: Sequence[Tier], facility_ids: Sequence[str]) -> list[SlotAssignment]:
    """Give each facility the next free slot key (``"<tier>-<n>"``) in fill order.

    Facilities past the last slot are left unassigned.
    """

    assignments: list[SlotAssignment] = []
    pending = iter(facility_ids)
    for tier in _fill_order(tiers):
        for slot_number in range(1, tier.slot_count + 1):
            facility_id = next(pending, None)
            if facility_id is None:
                return assignments
            assignments.append(
                SlotAssignment(
                    slot_key=f"{tier.name}-{slot_number}",
                    facility_id=facility_id,
                    tier_name=tier.name,
                    tier_order=tier.order,
                    slot_number=slot_number,
                )
            )
    return assignments


def _slot_count_problem(count: float) -> str | None:
    if count != int(count):
        return "Slot count must be a whole number"
    if count < MIN_SLOT_COUNT:
        return f"Minimum {MIN_SLOT_COUNT} slot required per tier"
    if count > MAX_SLOT_COUNT:
        return f"Maximum {MAX_SLOT_COUNT} slots allowed per tier"
    return None


def _check_capacity(
    label: str,
    unit: str,
    tier_total: float,
    vehicle_limit: float,
    tolerance_pct: float,
    result: TierValidationResult,
) -> None:
    if vehicle_limit <= 0 or tier_total <= 0:
        return
    allowed = vehicle_limit * (1 + tolerance_pct / 100)
    if tier_total > allowed:
        result.errors.append(
            f"Tier {label} ({tier_total:g}{unit}) exceed vehicle capacity ({vehicle_limit:g}{unit}) "
            f"by more than {tolerance_pct:g}%"
        )
    elif tier_total > vehicle_limit:
        result.warnings.append(
            f"Tier {label} ({tier_total:g}{unit}) slightly exceed capacity ({vehicle_limit:g}{unit}) "
            f"but within {tolerance_pct:g}% tolerance"
        )


def validate_tier_config(
    vehicle: VehicleCapacity,
    *,
    max_tiers: int | None = None,
    tolerance_pct: float | None = None,
) -> TierValidationResult:
    """Check a vehicle's tier configuration for onboarding-time mistakes."""

    max_tiers = settings.max_tiers if max_tiers is None else max_tiers
    tolerance_pct = settings.tier_capacity_tolerance_pct if tolerance_pct is None else tolerance_pct
    result = TierValidationResult(is_valid=True)
    if not vehicle.tiers:
        return result

    if len(vehicle.tiers) > max_tiers:
        result.errors.append(f"Maximum {max_tiers} tiers allowed")

    names = [tier.name.strip().lower() for tier in vehicle.tiers]
    if len(names) != len(set(names)):
        result.errors.append("Tier names must be unique")

    for position, tier in enumerate(vehicle.tiers, start=1):
        problem = _slot_count_problem(tier.slot_count)
        if problem:
            result.errors.append(f"Tier {position} ({tier.name}): {problem}")

    result.total_weight_kg = sum(tier.capacity_kg or 0.0 for tier in vehicle.tiers)
    result.total_volume_m3 = sum(tier.capacity_m3 or 0.0 for tier in vehicle.tiers)
    _check_capacity("weights", "kg", result.total_weight_kg, vehicle.max_weight_kg, tolerance_pct, result)
    _check_capacity("volumes", "m3", result.total_volume_m3, vehicle.volume_m3, tolerance_pct, result)

    result.is_valid = not result.errors
    return result
