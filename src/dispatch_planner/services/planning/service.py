"""Planning orchestration service used by the HTTP layer."""

from __future__ import annotations

import logging
from dataclasses import asdict

from ...config import settings
from ...errors import WorkflowTransitionError
from ...persistence.base import BatchSink
from ...persistence.database import SupabaseBatchSink
from ...persistence.filesystem import FileBatchSink, FileStorage
from ...schemas.planning import (
    AllocationRequest,
    AllocationResponse,
    BatchDraftRequest,
    BatchPreviewResponse,
    BatchSubmitResponse,
    GateResultModel,
    RouteResponse,
    SequenceRequest,
)
from ..allocation.service import allocate, validate_tier_config
from ..outputs.batch_formatter import batch_plan_to_record
from ..routing.origin import select_origin_warehouse
from ..routing.sequencer import sequence
from .plan import BatchPlan
from .workflow import GateResult, PlanningStep, PlanningWorkflow

logger = logging.getLogger(__name__)


class BatchNotReadyError(WorkflowTransitionError):
    """Raised when a draft cannot reach the review step; carries the gate report."""

    def __init__(self, step: PlanningStep, gates: list[GateResult]) -> None:
        failing = [message for gate in gates if not gate.passed for message in gate.messages]
        super().__init__(f"Batch is stuck at step '{step.value}': {'; '.join(dict.fromkeys(failing))}")
        self.step = step
        self.gates = gates


def get_sink(name: str | None = None) -> BatchSink:
    """Pick the submission sink; Supabase when configured, otherwise local files."""

    match name:
        case "supabase":
            return SupabaseBatchSink()
        case "filesystem":
            return FileBatchSink(FileStorage())
        case None:
            if settings.supabase_configured:
                return SupabaseBatchSink()
            logger.info("Supabase not configured - batches will be saved to files")
            return FileBatchSink(FileStorage())
        case _:
            raise ValueError(f"Unknown batch sink '{name}'.")


def allocate_slots(payload: AllocationRequest) -> AllocationResponse:
    vehicle = payload.vehicle.to_domain()
    result = allocate(vehicle.tiers, payload.required_slots)
    validation = validate_tier_config(vehicle)
    return AllocationResponse(**asdict(result), warnings=[*validation.errors, *validation.warnings])


def sequence_stops(payload: SequenceRequest) -> RouteResponse:
    route = sequence(
        payload.origin.to_domain(),
        [facility.to_domain() for facility in payload.facilities],
        assumed_speed_kmh=payload.assumed_speed_kmh,
        dwell_minutes_per_stop=payload.dwell_minutes_per_stop,
        strategy=payload.strategy,
    )
    return RouteResponse(**asdict(route))


def build_workflow(payload: BatchDraftRequest) -> PlanningWorkflow:
    """Apply a draft to a fresh workflow and advance it as far as its gates allow."""

    plan = BatchPlan(sequencing_strategy=payload.sequencing_strategy)
    workflow = PlanningWorkflow.from_order_name(payload.workflow_order or settings.workflow_order, plan)

    workflow.set_name(payload.name)
    workflow.set_priority(payload.priority)
    workflow.set_notes(payload.notes)
    workflow.set_schedule(payload.scheduled_date, payload.scheduled_time)
    workflow.select_vehicle(payload.vehicle.to_domain() if payload.vehicle else None)
    workflow.assign_driver(payload.driver_id)
    facilities = [facility.to_domain() for facility in payload.facilities]
    if payload.warehouse is not None:
        warehouse = payload.warehouse.to_domain()
    else:
        candidates = [candidate.to_domain() for candidate in payload.candidate_warehouses]
        warehouse = select_origin_warehouse(facilities, candidates)
    workflow.select_warehouse(warehouse)
    workflow.set_facilities(facilities)

    while workflow.can_advance():
        workflow.advance()
    return workflow


def _gate_models(gates: list[GateResult]) -> list[GateResultModel]:
    return [
        GateResultModel(
            step=gate.step.value,
            passed=gate.passed,
            failures=[failure.value for failure in gate.failures],
            messages=gate.messages,
        )
        for gate in gates
    ]


def preview_batch(payload: BatchDraftRequest) -> BatchPreviewResponse:
    workflow = build_workflow(payload)
    gates = workflow.gate_report()
    return BatchPreviewResponse(
        current_step=workflow.current_step.value,
        ready=workflow.current_step is PlanningStep.REVIEW and workflow.gate().passed,
        gates=_gate_models(gates),
        plan=workflow.plan.snapshot(),
    )


def submit_batch(payload: BatchDraftRequest, sink: BatchSink | None = None) -> BatchSubmitResponse:
    workflow = build_workflow(payload)
    if workflow.current_step is not PlanningStep.REVIEW or not workflow.gate().passed:
        raise BatchNotReadyError(workflow.current_step, workflow.gate_report())

    sink = sink or get_sink()
    batch_id = workflow.submit(sink)
    return BatchSubmitResponse(
        batch_id=batch_id,
        status=workflow.plan.status.value,
        sink=sink.name,
        record=batch_plan_to_record(workflow.plan),
    )


def gate_report_payload(gates: list[GateResult]) -> list[dict]:
    return [model.model_dump() for model in _gate_models(gates)]
