"""Batch plan aggregate with derived allocation and route."""

from __future__ import annotations

import logging
from dataclasses import asdict
from datetime import date, time
from enum import Enum
from typing import Iterable, Literal, Optional

from ...errors import WorkflowTransitionError
from ...models.domain import Facility, VehicleCapacity, Warehouse
from ..allocation.models import AllocationResult, SlotAssignment
from ..allocation.service import allocate, assign_slots
from ..geospatial import validate_coordinate
from ..routing.models import RouteResult, SequencingStrategy
from ..routing.sequencer import sequence

logger = logging.getLogger(__name__)

Priority = Literal["low", "medium", "high", "urgent"]
PRIORITIES: tuple[str, ...] = ("low", "medium", "high", "urgent")


def _check_facility(facility: Facility) -> None:
    if facility.coordinate is not None:
        validate_coordinate(facility.coordinate)


class BatchStatus(str, Enum):
    PLANNED = "planned"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class BatchPlan:
    """A delivery batch in progress: one vehicle, one origin warehouse, a set of facility stops.

    ``allocation``, ``route`` and ``slot_assignments`` are derived values. They
    are recomputed by the mutators below and are never set directly. The
    allocation exists only for a vehicle with tiers; the route exists once a
    vehicle, a warehouse and at least one geocoded facility are all present.
    """

    def __init__(
        self,
        *,
        name: str | None = None,
        priority: Priority = "medium",
        sequencing_strategy: SequencingStrategy | None = None,
        assumed_speed_kmh: float | None = None,
        dwell_minutes_per_stop: float | None = None,
    ) -> None:
        self.name = name
        self.priority: Priority = priority
        self.scheduled_date: Optional[date] = None
        self.scheduled_time: Optional[time] = None
        self.driver_id: Optional[str] = None
        self.notes: Optional[str] = None
        self.warehouse: Optional[Warehouse] = None
        self.vehicle: Optional[VehicleCapacity] = None
        self.status = BatchStatus.PLANNED
        self.allocation: Optional[AllocationResult] = None
        self.route: Optional[RouteResult] = None
        self.slot_assignments: tuple[SlotAssignment, ...] = ()
        self._facilities: dict[str, Facility] = {}
        self._frozen = False
        self._sequencing_strategy = sequencing_strategy
        self._assumed_speed_kmh = assumed_speed_kmh
        self._dwell_minutes_per_stop = dwell_minutes_per_stop

    @property
    def facilities(self) -> tuple[Facility, ...]:
        return tuple(self._facilities.values())

    @property
    def facility_ids(self) -> tuple[str, ...]:
        return tuple(self._facilities)

    @property
    def is_frozen(self) -> bool:
        return self._frozen

    @property
    def has_overflow(self) -> bool:
        return self.allocation is not None and self.allocation.is_overflow

    def stop_order(self) -> tuple[str, ...]:
        """Facility ids in route order followed by facilities the route skipped."""

        if self.route is None:
            return self.facility_ids
        return (*self.route.ordered_facility_ids, *self.route.skipped_facility_ids)

    def _ensure_mutable(self) -> None:
        if self._frozen:
            raise WorkflowTransitionError("Batch plan has been submitted and can no longer be changed.")

    def set_schedule(self, scheduled_date: date | None, scheduled_time: time | None) -> None:
        self._ensure_mutable()
        self.scheduled_date = scheduled_date
        self.scheduled_time = scheduled_time

    def set_name(self, name: str | None) -> None:
        self._ensure_mutable()
        self.name = name.strip() if name and name.strip() else None

    def set_priority(self, priority: Priority) -> None:
        self._ensure_mutable()
        if priority not in PRIORITIES:
            raise ValueError(f"Unknown priority '{priority}'.")
        self.priority = priority

    def set_notes(self, notes: str | None) -> None:
        self._ensure_mutable()
        self.notes = notes or None

    def assign_driver(self, driver_id: str | None) -> None:
        self._ensure_mutable()
        self.driver_id = driver_id or None

    def set_warehouse(self, warehouse: Warehouse | None) -> None:
        self._ensure_mutable()
        if warehouse is not None:
            validate_coordinate(warehouse.coordinate)
        self.warehouse = warehouse
        self.recompute()

    def set_vehicle(self, vehicle: VehicleCapacity | None) -> None:
        self._ensure_mutable()
        self.vehicle = vehicle
        self.recompute()

    def add_facility(self, facility: Facility) -> None:
        self._ensure_mutable()
        _check_facility(facility)
        self._facilities[facility.id] = facility
        self.recompute()

    def remove_facility(self, facility_id: str) -> None:
        self._ensure_mutable()
        if self._facilities.pop(facility_id, None) is not None:
            self.recompute()

    def set_facilities(self, facilities: Iterable[Facility]) -> None:
        self._ensure_mutable()
        selected: dict[str, Facility] = {}
        for facility in facilities:
            _check_facility(facility)
            selected.setdefault(facility.id, facility)
        self._facilities = selected
        self.recompute()

    def recompute(self) -> None:
        """Rebuild allocation, route and slot assignments from the current selection."""

        tiers = self.vehicle.tiers if self.vehicle is not None else ()
        self.allocation = allocate(tiers, len(self._facilities)) if tiers else None

        routable = any(facility.coordinate is not None for facility in self._facilities.values())
        if self.vehicle is not None and self.warehouse is not None and routable:
            self.route = sequence(
                self.warehouse.coordinate,
                self.facilities,
                assumed_speed_kmh=self._assumed_speed_kmh,
                dwell_minutes_per_stop=self._dwell_minutes_per_stop,
                strategy=self._sequencing_strategy,
            )
        else:
            self.route = None

        self.slot_assignments = tuple(assign_slots(tiers, self.stop_order())) if tiers else ()
        logger.debug(
            "Recomputed plan: %d facilities, allocation=%s, route=%s",
            len(self._facilities),
            self.allocation is not None,
            self.route is not None,
        )

    def freeze(self, status: BatchStatus) -> None:
        self._frozen = True
        self.status = status

    def snapshot(self) -> dict:
        """JSON-serializable view of the plan for rendering."""

        return {
            "name": self.name,
            "status": self.status.value,
            "priority": self.priority,
            "scheduled_date": self.scheduled_date.isoformat() if self.scheduled_date else None,
            "scheduled_time": self.scheduled_time.strftime("%H:%M") if self.scheduled_time else None,
            "driver_id": self.driver_id,
            "notes": self.notes,
            "warehouse": asdict(self.warehouse) if self.warehouse else None,
            "vehicle": asdict(self.vehicle) if self.vehicle else None,
            "facilities": [asdict(facility) for facility in self._facilities.values()],
            "allocation": asdict(self.allocation) if self.allocation else None,
            "route": asdict(self.route) if self.route else None,
            "slot_assignments": [asdict(item) for item in self.slot_assignments],
            "frozen": self._frozen,
        }
