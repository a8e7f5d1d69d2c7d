"""Serializers for submitted batch plans."""

from __future__ import annotations

import csv
import io
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ..planning.plan import BatchPlan, BatchStatus


def _optimized_route(plan: "BatchPlan") -> list[list[float]]:
    """[lng, lat] pairs: warehouse first, then the routed facilities in visiting order."""

    if plan.warehouse is None:
        return []
    points = [[plan.warehouse.coordinate.lng, plan.warehouse.coordinate.lat]]
    if plan.route is None:
        return points
    by_id = {facility.id: facility for facility in plan.facilities}
    for facility_id in plan.route.ordered_facility_ids:
        coordinate = by_id[facility_id].coordinate
        points.append([coordinate.lng, coordinate.lat])
    return points


def batch_plan_to_record(plan: "BatchPlan", *, status: "BatchStatus | None" = None) -> dict:
    """Row shape stored by the batch table."""

    route = plan.route
    status = status or plan.status
    scheduled_date = plan.scheduled_date.isoformat() if plan.scheduled_date else None
    name = plan.name or (f"Batch {scheduled_date}" if scheduled_date else "Batch")
    return {
        "name": name,
        "warehouse_id": plan.warehouse.id if plan.warehouse else None,
        "vehicle_id": plan.vehicle.vehicle_id if plan.vehicle else None,
        "driver_id": plan.driver_id,
        "facility_ids": list(plan.stop_order()),
        "scheduled_date": scheduled_date,
        "scheduled_time": plan.scheduled_time.strftime("%H:%M") if plan.scheduled_time else None,
        "status": status.value,
        "priority": plan.priority,
        "notes": plan.notes,
        "slot_assignments": {
            item.slot_key: {
                "facility_id": item.facility_id,
                "tier_name": item.tier_name,
                "tier_order": item.tier_order,
                "slot_number": item.slot_number,
            }
            for item in plan.slot_assignments
        },
        "optimized_route": _optimized_route(plan),
        "total_distance": round(route.total_distance_km, 2) if route else 0,
        "estimated_duration": int(round(route.estimated_duration_min)) if route else 0,
    }


def batch_manifest_to_csv(plan: "BatchPlan") -> str:
    """One row per facility in stop order; skipped facilities have no sequence."""

    buffer = io.StringIO()
    fieldnames = [
        "sequence",
        "facility_id",
        "facility_name",
        "latitude",
        "longitude",
        "slot_key",
        "distance_from_prev_km",
        "cumulative_distance_km",
        "arrival_min",
    ]
    writer = csv.DictWriter(buffer, fieldnames=fieldnames)
    writer.writeheader()

    by_id = {facility.id: facility for facility in plan.facilities}
    slots = {item.facility_id: item.slot_key for item in plan.slot_assignments}
    stops = {stop.facility_id: stop for stop in plan.route.stops} if plan.route else {}
    for facility_id in plan.stop_order():
        facility = by_id[facility_id]
        stop = stops.get(facility_id)
        writer.writerow(
            {
                "sequence": stop.sequence if stop else "",
                "facility_id": facility_id,
                "facility_name": facility.name,
                "latitude": facility.coordinate.lat if facility.coordinate else "",
                "longitude": facility.coordinate.lng if facility.coordinate else "",
                "slot_key": slots.get(facility_id, ""),
                "distance_from_prev_km": round(stop.distance_from_prev_km, 3) if stop else "",
                "cumulative_distance_km": round(stop.cumulative_distance_km, 3) if stop else "",
                "arrival_min": round(stop.arrival_min, 1) if stop else "",
            }
        )
    return buffer.getvalue()
