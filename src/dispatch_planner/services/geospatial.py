"""Geospatial helper functions."""

from __future__ import annotations

import math
from typing import Iterable

from ..errors import InvalidCoordinate
from ..models.domain import Coordinate

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Compute distance between two coordinates using the Haversine formula."""

    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    # Rounding can push a just outside [0, 1] for near-antipodal points
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c


def is_valid_coordinate(lat: float, lng: float) -> bool:
    # NaN fails both comparisons
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def validate_coordinate(point: Coordinate) -> Coordinate:
    """Return ``point`` unchanged, raising InvalidCoordinate when it is out of range."""

    if not is_valid_coordinate(point.lat, point.lng):
        raise InvalidCoordinate(point.lat, point.lng)
    return point


def distance_km(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between two validated coordinates."""

    validate_coordinate(a)
    validate_coordinate(b)
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def path_distance_km(points: Iterable[Coordinate]) -> float:
    """Sum the legs of an open polyline visiting ``points`` in order."""

    total = 0.0
    previous: Coordinate | None = None
    for point in points:
        if previous is not None:
            total += distance_km(previous, point)
        previous = point
    return total
