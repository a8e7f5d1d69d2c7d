"""Domain models for vehicles, facilities and warehouses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class Coordinate:
    lat: float
    lng: float


@dataclass(frozen=True, slots=True)
class Tier:
    """A named capacity band of a vehicle (e.g. front rack) holding a fixed number of slots."""

    name: str
    order: int
    slot_count: int
    capacity_kg: Optional[float] = None
    capacity_m3: Optional[float] = None


@dataclass(frozen=True, slots=True)
class VehicleCapacity:
    """Slot and payload capacity of a vehicle.

    An empty ``tiers`` tuple means the vehicle has no slot configuration; slot
    validation is skipped for it rather than treating it as zero capacity.
    """

    vehicle_id: str
    tiers: tuple[Tier, ...] = ()
    volume_m3: float = 0.0
    max_weight_kg: float = 0.0

    @property
    def total_slots(self) -> int:
        return sum(tier.slot_count for tier in self.tiers)

    @property
    def has_slot_configuration(self) -> bool:
        return bool(self.tiers)


@dataclass(frozen=True, slots=True)
class Facility:
    """Delivery destination; ``coordinate`` is None when the facility was never geocoded."""

    id: str
    name: str
    coordinate: Optional[Coordinate] = None


@dataclass(frozen=True, slots=True)
class Warehouse:
    id: str
    name: str
    coordinate: Coordinate
