"""Slot allocation result models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal

UtilizationStatus = Literal["low", "optimal", "high", "exceeded"]


@dataclass(frozen=True, slots=True)
class TierAllocation:
    tier_name: str
    slots_in_tier: int
    slots_allocated: int


@dataclass(frozen=True, slots=True)
class AllocationResult:
    total_slots: int
    required_slots: int
    per_tier: tuple[TierAllocation, ...]
    is_overflow: bool
    overflow_count: int
    utilization_pct: int
    utilization_status: UtilizationStatus = "low"

    @property
    def allocated_slots(self) -> int:
        return sum(item.slots_allocated for item in self.per_tier)

    @property
    def available_slots(self) -> int:
        return max(0, self.total_slots - self.required_slots)


@dataclass(frozen=True, slots=True)
class SlotAssignment:
    slot_key: str
    facility_id: str
    tier_name: str
    tier_order: int
    slot_number: int


@dataclass(slots=True)
class TierValidationResult:
    is_valid: bool
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    total_weight_kg: float = 0.0
    total_volume_m3: float = 0.0
