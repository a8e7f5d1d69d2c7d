"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Literal

SequencingStrategy = Literal["nearest_neighbor", "two_opt", "ortools"]


@dataclass(frozen=True, slots=True)
class RouteStop:
    facility_id: str
    sequence: int
    distance_from_prev_km: float
    cumulative_distance_km: float
    arrival_min: float


@dataclass(frozen=True, slots=True)
class RouteResult:
    ordered_facility_ids: tuple[str, ...]
    total_distance_km: float
    estimated_duration_min: float
    skipped_facility_ids: tuple[str, ...] = ()
    stops: tuple[RouteStop, ...] = ()
    strategy: SequencingStrategy = "nearest_neighbor"

    @property
    def stop_count(self) -> int:
        return len(self.ordered_facility_ids)

    @property
    def is_empty(self) -> bool:
        return not self.ordered_facility_ids


@dataclass(slots=True)
class DistanceMatrix:
    """Pairwise straight-line distances; index 0 is the origin, 1..n the stops."""

    labels: List[str]
    km: List[List[float]] = field(default_factory=list)

    def leg(self, i: int, j: int) -> float:
        return self.km[i][j]
