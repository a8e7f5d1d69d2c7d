"""Stop sequencing from an origin warehouse.

The default strategy is the greedy nearest-neighbor heuristic: always drive
to the closest unvisited facility. It is O(n^2) and good enough for the tens
of stops a batch carries, but it is not a shortest-tour guarantee. The
``two_opt`` and ``ortools`` strategies improve on the greedy order behind the
same ``sequence`` interface.

Routes are open paths: distance is measured from the origin through the last
stop, without the return leg.
"""

from __future__ import annotations

import logging
from typing import Sequence

from ...config import settings
from ...models.domain import Coordinate, Facility
from ..geospatial import distance_km, validate_coordinate
from .models import DistanceMatrix, RouteResult, RouteStop, SequencingStrategy

logger = logging.getLogger(__name__)

_IMPROVEMENT_EPSILON_KM = 1e-9


def estimate_duration_min(
    total_distance_km: float,
    stop_count: int,
    *,
    assumed_speed_kmh: float,
    dwell_minutes_per_stop: float,
) -> float:
    """Driving time at a flat average speed plus a flat dwell per stop."""

    if assumed_speed_kmh <= 0:
        raise ValueError("assumed_speed_kmh must be > 0")
    return total_distance_km / assumed_speed_kmh * 60.0 + stop_count * dwell_minutes_per_stop


def partition_facilities(facilities: Sequence[Facility]) -> tuple[list[Facility], list[str]]:
    """Split facilities into routable ones and ids of those lacking a coordinate.

    Duplicate ids are collapsed to their first occurrence.
    """

    routable: list[Facility] = []
    skipped: list[str] = []
    seen: set[str] = set()
    for facility in facilities:
        if facility.id in seen:
            continue
        seen.add(facility.id)
        if facility.coordinate is None:
            skipped.append(facility.id)
        else:
            validate_coordinate(facility.coordinate)
            routable.append(facility)
    return routable, skipped


def build_distance_matrix(origin: Coordinate, facilities: Sequence[Facility]) -> DistanceMatrix:
    points = [origin, *(facility.coordinate for facility in facilities)]
    matrix = DistanceMatrix(labels=["origin", *(facility.id for facility in facilities)])
    matrix.km = [[distance_km(a, b) for b in points] for a in points]
    return matrix


def nearest_neighbor_order(matrix: DistanceMatrix) -> list[int]:
    """Greedy visiting order over matrix indices 1..n, starting at index 0.

    Ties on distance go to the smallest facility id.
    """

    unvisited = set(range(1, len(matrix.labels)))
    order: list[int] = []
    current = 0
    while unvisited:
        nearest = min(unvisited, key=lambda idx: (matrix.leg(current, idx), matrix.labels[idx]))
        order.append(nearest)
        unvisited.remove(nearest)
        current = nearest
    return order


def _path_length(matrix: DistanceMatrix, order: Sequence[int]) -> float:
    total = 0.0
    previous = 0
    for idx in order:
        total += matrix.leg(previous, idx)
        previous = idx
    return total


def two_opt_improve(matrix: DistanceMatrix, order: Sequence[int]) -> list[int]:
    """First-improvement 2-opt over an open path whose start (the origin) is fixed."""

    path = [0, *order]
    last = len(path) - 1
    improved = True
    while improved:
        improved = False
        for i in range(1, last):
            for j in range(i + 1, last + 1):
                before = matrix.leg(path[i - 1], path[i])
                after = matrix.leg(path[i - 1], path[j])
                if j < last:
                    before += matrix.leg(path[j], path[j + 1])
                    after += matrix.leg(path[i], path[j + 1])
                if after < before - _IMPROVEMENT_EPSILON_KM:
                    path[i : j + 1] = reversed(path[i : j + 1])
                    improved = True
    return path[1:]


def _order_for_strategy(matrix: DistanceMatrix, strategy: SequencingStrategy) -> list[int]:
    greedy = nearest_neighbor_order(matrix)
    match strategy:
        case "nearest_neighbor":
            return greedy
        case "two_opt":
            return two_opt_improve(matrix, greedy)
        case "ortools":
            from .ortools_solver import solve_open_path

            solved = solve_open_path(matrix)
            if solved is None:
                logger.warning("OR-Tools found no sequence; keeping nearest-neighbor order")
                return greedy
            # Keep the greedy order when the solver result is longer
            if _path_length(matrix, solved) > _path_length(matrix, greedy) + _IMPROVEMENT_EPSILON_KM:
                return greedy
            return solved
        case _:
            raise ValueError(f"Unknown sequencing strategy '{strategy}'.")


def sequence(
    origin: Coordinate,
    facilities: Sequence[Facility],
    *,
    assumed_speed_kmh: float | None = None,
    dwell_minutes_per_stop: float | None = None,
    strategy: SequencingStrategy | None = None,
) -> RouteResult:
    """Order ``facilities`` into a route leaving from ``origin``.

    Facilities without a coordinate are excluded from the route and listed in
    ``skipped_facility_ids``. An empty routable set yields an empty route.
    """

    speed = assumed_speed_kmh if assumed_speed_kmh is not None else settings.assumed_speed_kmh
    dwell = dwell_minutes_per_stop if dwell_minutes_per_stop is not None else settings.dwell_minutes_per_stop
    strategy = strategy or settings.sequencing_strategy
    if speed <= 0:
        raise ValueError("assumed_speed_kmh must be > 0")

    validate_coordinate(origin)
    routable, skipped = partition_facilities(facilities)
    if skipped:
        logger.warning("Skipping %d facilities without coordinates: %s", len(skipped), ", ".join(skipped))
    if not routable:
        return RouteResult(
            ordered_facility_ids=(),
            total_distance_km=0.0,
            estimated_duration_min=0.0,
            skipped_facility_ids=tuple(skipped),
            strategy=strategy,
        )

    matrix = build_distance_matrix(origin, routable)
    order = _order_for_strategy(matrix, strategy)

    stops: list[RouteStop] = []
    total_distance = 0.0
    previous = 0
    for position, idx in enumerate(order, start=1):
        leg = matrix.leg(previous, idx)
        total_distance += leg
        arrival = total_distance / speed * 60.0 + (position - 1) * dwell
        stops.append(
            RouteStop(
                facility_id=matrix.labels[idx],
                sequence=position,
                distance_from_prev_km=leg,
                cumulative_distance_km=total_distance,
                arrival_min=arrival,
            )
        )
        previous = idx

    duration = estimate_duration_min(
        total_distance,
        len(stops),
        assumed_speed_kmh=speed,
        dwell_minutes_per_stop=dwell,
    )
    logger.info(
        "Sequenced %d stops (%s): %.2f km, %.0f min", len(stops), strategy, total_distance, duration
    )
    return RouteResult(
        ordered_facility_ids=tuple(stop.facility_id for stop in stops),
        total_distance_km=total_distance,
        estimated_duration_min=duration,
        skipped_facility_ids=tuple(skipped),
        stops=tuple(stops),
        strategy=strategy,
    )
