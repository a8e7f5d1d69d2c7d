"""Step-by-step planning workflow that gates a batch plan before submission.

Each step owns a gate predicate over the plan. The workflow advances only when
the current gate passes, may always go back to an earlier step, and submits
only from the review step after re-running every gate. Both wizard variants
(vehicle first, or facilities before vehicle) are step orders of the same
machine.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, time
from enum import Enum
from typing import TYPE_CHECKING, Callable, Iterable, Sequence

from ...errors import SubmitError, WorkflowTransitionError
from ...models.domain import Facility, VehicleCapacity, Warehouse
from ..outputs.batch_formatter import batch_manifest_to_csv, batch_plan_to_record
from .plan import BatchPlan, BatchStatus, Priority

if TYPE_CHECKING:
    from ...persistence.base import BatchSink

logger = logging.getLogger(__name__)


class PlanningStep(str, Enum):
    SCHEDULE = "schedule"
    VEHICLE = "vehicle"
    ROUTE_PLANNING = "route_planning"
    REVIEW = "review"


class GateFailure(str, Enum):
    MISSING_SCHEDULED_DATE = "missing_scheduled_date"
    MISSING_SCHEDULED_TIME = "missing_scheduled_time"
    NO_VEHICLE_SELECTED = "no_vehicle_selected"
    NO_WAREHOUSE_SELECTED = "no_warehouse_selected"
    EMPTY_FACILITY_SET = "empty_facility_set"
    SLOT_OVERFLOW = "slot_overflow"


GATE_MESSAGES: dict[GateFailure, str] = {
    GateFailure.MISSING_SCHEDULED_DATE: "Scheduled date is required",
    GateFailure.MISSING_SCHEDULED_TIME: "Scheduled time is required",
    GateFailure.NO_VEHICLE_SELECTED: "Vehicle selection is required",
    GateFailure.NO_WAREHOUSE_SELECTED: "Start warehouse is required",
    GateFailure.EMPTY_FACILITY_SET: "Please add at least one facility",
    GateFailure.SLOT_OVERFLOW: "Selected facilities exceed the vehicle's slot capacity",
}


@dataclass(frozen=True, slots=True)
class GateResult:
    step: PlanningStep
    failures: tuple[GateFailure, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.failures

    @property
    def messages(self) -> list[str]:
        return [GATE_MESSAGES[failure] for failure in self.failures]


def _schedule_gate(plan: BatchPlan) -> list[GateFailure]:
    failures: list[GateFailure] = []
    if plan.scheduled_date is None:
        failures.append(GateFailure.MISSING_SCHEDULED_DATE)
    if plan.scheduled_time is None:
        failures.append(GateFailure.MISSING_SCHEDULED_TIME)
    return failures


def _vehicle_gate(plan: BatchPlan) -> list[GateFailure]:
    if plan.vehicle is None:
        return [GateFailure.NO_VEHICLE_SELECTED]
    return []


def _route_planning_gate(plan: BatchPlan) -> list[GateFailure]:
    failures: list[GateFailure] = []
    if plan.warehouse is None:
        failures.append(GateFailure.NO_WAREHOUSE_SELECTED)
    if not plan.facility_ids:
        failures.append(GateFailure.EMPTY_FACILITY_SET)
    # A vehicle without tiers has no allocation and is never in overflow
    if plan.has_overflow:
        failures.append(GateFailure.SLOT_OVERFLOW)
    return failures


@dataclass(frozen=True, slots=True)
class GateDefinition:
    step: PlanningStep
    check: Callable[[BatchPlan], list[GateFailure]] = field(repr=False)


GATES: dict[PlanningStep, GateDefinition] = {
    PlanningStep.SCHEDULE: GateDefinition(PlanningStep.SCHEDULE, _schedule_gate),
    PlanningStep.VEHICLE: GateDefinition(PlanningStep.VEHICLE, _vehicle_gate),
    PlanningStep.ROUTE_PLANNING: GateDefinition(PlanningStep.ROUTE_PLANNING, _route_planning_gate),
}

VEHICLE_FIRST: tuple[PlanningStep, ...] = (
    PlanningStep.SCHEDULE,
    PlanningStep.VEHICLE,
    PlanningStep.ROUTE_PLANNING,
    PlanningStep.REVIEW,
)
LEGACY_FACILITIES_FIRST: tuple[PlanningStep, ...] = (
    PlanningStep.SCHEDULE,
    PlanningStep.ROUTE_PLANNING,
    PlanningStep.VEHICLE,
    PlanningStep.REVIEW,
)
STEP_ORDERS: dict[str, tuple[PlanningStep, ...]] = {
    "vehicle_first": VEHICLE_FIRST,
    "legacy_facilities_first": LEGACY_FACILITIES_FIRST,
}


def _validate_step_order(step_order: Sequence[PlanningStep]) -> tuple[PlanningStep, ...]:
    steps = tuple(PlanningStep(step) for step in step_order)
    if len(set(steps)) != len(steps):
        raise ValueError("Workflow step order contains duplicate steps.")
    if set(steps) != set(PlanningStep):
        missing = sorted(step.value for step in set(PlanningStep) - set(steps))
        raise ValueError(f"Workflow step order is missing steps: {', '.join(missing)}.")
    if steps[-1] is not PlanningStep.REVIEW:
        raise ValueError("The review step must come last.")
    return steps


class PlanningWorkflow:
    """Drives one batch plan from schedule entry to submission."""

    def __init__(
        self,
        plan: BatchPlan | None = None,
        *,
        step_order: Sequence[PlanningStep] = VEHICLE_FIRST,
    ) -> None:
        self.plan = plan or BatchPlan()
        self.steps = _validate_step_order(step_order)
        self._position = 0
        self.batch_id: str | None = None

    @classmethod
    def from_order_name(cls, order_name: str, plan: BatchPlan | None = None) -> "PlanningWorkflow":
        try:
            steps = STEP_ORDERS[order_name]
        except KeyError:
            raise ValueError(f"Unknown workflow order '{order_name}'.") from None
        return cls(plan, step_order=steps)

    @property
    def current_step(self) -> PlanningStep:
        return self.steps[self._position]

    @property
    def is_submitted(self) -> bool:
        return self.batch_id is not None

    def gate(self, step: PlanningStep | None = None) -> GateResult:
        """Evaluate the gate of ``step`` (default: the current step)."""

        step = self.current_step if step is None else PlanningStep(step)
        if step is PlanningStep.REVIEW:
            failures: list[GateFailure] = []
            for other in self.steps:
                if other is PlanningStep.REVIEW:
                    continue
                failures.extend(f for f in GATES[other].check(self.plan) if f not in failures)
            return GateResult(step, tuple(failures))
        return GateResult(step, tuple(GATES[step].check(self.plan)))

    def gate_report(self) -> list[GateResult]:
        return [self.gate(step) for step in self.steps]

    def can_advance(self) -> bool:
        return self.current_step is not PlanningStep.REVIEW and self.gate().passed

    def advance(self) -> PlanningStep:
        if self.current_step is PlanningStep.REVIEW:
            raise WorkflowTransitionError("Review is the last step; submit the plan instead.")
        result = self.gate()
        if not result.passed:
            raise WorkflowTransitionError(
                f"Cannot leave step '{result.step.value}': {'; '.join(result.messages)}"
            )
        self._position += 1
        return self.current_step

    def go_back(self, step: PlanningStep | None = None) -> PlanningStep:
        """Return to ``step`` (default: the previous step). Never checks gates."""

        self._ensure_open()
        if step is None:
            self._position = max(0, self._position - 1)
            return self.current_step
        target = self.steps.index(PlanningStep(step))
        if target > self._position:
            raise WorkflowTransitionError(f"Cannot jump forward to step '{PlanningStep(step).value}'.")
        self._position = target
        return self.current_step

    def _ensure_open(self) -> None:
        if self.is_submitted:
            raise WorkflowTransitionError("Batch has already been submitted.")

    # Setters wrapped by the workflow; the plan recomputes derived values itself.

    def set_schedule(self, scheduled_date: date | None, scheduled_time: time | None) -> None:
        self._ensure_open()
        self.plan.set_schedule(scheduled_date, scheduled_time)

    def set_name(self, name: str | None) -> None:
        self._ensure_open()
        self.plan.set_name(name)

    def set_priority(self, priority: Priority) -> None:
        self._ensure_open()
        self.plan.set_priority(priority)

    def set_notes(self, notes: str | None) -> None:
        self._ensure_open()
        self.plan.set_notes(notes)

    def select_vehicle(self, vehicle: VehicleCapacity | None) -> None:
        self._ensure_open()
        self.plan.set_vehicle(vehicle)

    def assign_driver(self, driver_id: str | None) -> None:
        self._ensure_open()
        self.plan.assign_driver(driver_id)

    def select_warehouse(self, warehouse: Warehouse | None) -> None:
        self._ensure_open()
        self.plan.set_warehouse(warehouse)

    def add_facility(self, facility: Facility) -> None:
        self._ensure_open()
        self.plan.add_facility(facility)

    def remove_facility(self, facility_id: str) -> None:
        self._ensure_open()
        self.plan.remove_facility(facility_id)

    def set_facilities(self, facilities: Iterable[Facility]) -> None:
        self._ensure_open()
        self.plan.set_facilities(facilities)

    def submit(self, sink: "BatchSink") -> str:
        """Re-check every gate, freeze the plan and hand it to ``sink`` exactly once.

        On a sink failure the plan stays editable and the workflow stays on the
        review step so the caller can retry.
        """

        self._ensure_open()
        if self.current_step is not PlanningStep.REVIEW:
            raise WorkflowTransitionError("A batch can only be submitted from the review step.")
        if self.plan.status is not BatchStatus.PLANNED:
            raise WorkflowTransitionError(
                f"Only planned batches can be submitted (status is '{self.plan.status.value}')."
            )
        result = self.gate(PlanningStep.REVIEW)
        if not result.passed:
            raise WorkflowTransitionError(f"Batch is not ready: {'; '.join(result.messages)}")

        final_status = BatchStatus.ASSIGNED if self.plan.driver_id else BatchStatus.PLANNED
        record = batch_plan_to_record(self.plan, status=final_status)
        try:
            batch_id = sink.submit(record, manifest_csv=batch_manifest_to_csv(self.plan))
        except SubmitError as exc:
            logger.warning("Batch submission failed, plan kept in review: %s", exc)
            raise

        self.plan.freeze(final_status)
        self.batch_id = batch_id
        logger.info(
            "Submitted batch %s with %d facilities (%s)",
            batch_id,
            len(self.plan.facility_ids),
            final_status.value,
        )
        return batch_id
