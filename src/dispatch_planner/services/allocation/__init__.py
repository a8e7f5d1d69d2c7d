"""Slot allocation services."""

from .models import AllocationResult, SlotAssignment, TierAllocation, TierValidationResult
from .service import allocate, assign_slots, utilization_status, validate_tier_config

__all__ = [
    "allocate",
    "assign_slots",
    "utilization_status",
    "validate_tier_config",
    "AllocationResult",
    "SlotAssignment",
    "TierAllocation",
    "TierValidationResult",
]
