"""OR-Tools open-path sequencing for a single batch vehicle.

The vehicle starts at the origin (matrix index 0) and ends at a dummy node
that is free to reach from every stop, so the solver orders the stops of an
open path instead of a round trip.
"""

from __future__ import annotations

import logging

from ortools.constraint_solver import pywrapcp, routing_enums_pb2

from ...config import settings
from .models import DistanceMatrix

logger = logging.getLogger(__name__)


def _metres(km: float) -> int:
    return int(round(km * 1000.0))


def solve_open_path(matrix: DistanceMatrix, *, time_limit_seconds: int | None = None) -> list[int] | None:
    """Return the visiting order over indices 1..n, or None when no solution is found."""

    stop_count = len(matrix.labels) - 1
    if stop_count <= 0:
        return []
    if stop_count == 1:
        return [1]

    end_node = stop_count + 1
    node_count = stop_count + 2
    cost = [[0] * node_count for _ in range(node_count)]
    for i in range(stop_count + 1):
        for j in range(stop_count + 1):
            cost[i][j] = _metres(matrix.leg(i, j))
    # Dummy end node: zero cost to reach, never departed from

    manager = pywrapcp.RoutingIndexManager(node_count, 1, [0], [end_node])
    routing = pywrapcp.RoutingModel(manager)

    def distance_callback(from_index: int, to_index: int) -> int:
        from_node = manager.IndexToNode(from_index)
        to_node = manager.IndexToNode(to_index)
        return cost[from_node][to_node]

    transit_callback_index = routing.RegisterTransitCallback(distance_callback)
    routing.SetArcCostEvaluatorOfAllVehicles(transit_callback_index)

    search_parameters = pywrapcp.DefaultRoutingSearchParameters()
    search_parameters.first_solution_strategy = routing_enums_pb2.FirstSolutionStrategy.PATH_CHEAPEST_ARC
    limit = settings.solver_time_limit_seconds if time_limit_seconds is None else time_limit_seconds
    if limit > 0:
        search_parameters.time_limit.FromSeconds(limit)

    assignment = routing.SolveWithParameters(search_parameters)
    if not assignment:
        logger.warning("OR-Tools returned no assignment for %d stops", stop_count)
        return None

    order: list[int] = []
    index = routing.Start(0)
    while not routing.IsEnd(index):
        node = manager.IndexToNode(index)
        if node != 0:
            order.append(node)
        index = assignment.Value(routing.NextVar(index))
    return order
