"""Origin warehouse selection for a set of facility stops."""

from __future__ import annotations

import logging
from typing import Sequence

from ...models.domain import Coordinate, Facility, Warehouse
from ..geospatial import distance_km, validate_coordinate

logger = logging.getLogger(__name__)


def facility_centroid(facilities: Sequence[Facility]) -> Coordinate | None:
    """Mean latitude/longitude of the geocoded facilities, or None if there are none."""

    points = [validate_coordinate(facility.coordinate) for facility in facilities if facility.coordinate is not None]
    if not points:
        return None
    return Coordinate(
        lat=sum(point.lat for point in points) / len(points),
        lng=sum(point.lng for point in points) / len(points),
    )


def select_origin_warehouse(facilities: Sequence[Facility], warehouses: Sequence[Warehouse]) -> Warehouse | None:
    """Pick the warehouse closest to the centroid of the facilities.

    Facilities without a coordinate are ignored. Equal distances go to the
    smallest warehouse id. Returns None when there is nothing to compare.
    """

    if not warehouses:
        return None
    centroid = facility_centroid(facilities)
    if centroid is None:
        logger.warning("No geocoded facilities; cannot choose an origin warehouse")
        return None
    best = min(warehouses, key=lambda warehouse: (distance_km(centroid, warehouse.coordinate), warehouse.id))
    logger.info("Selected warehouse %s as origin for %d facilities", best.id, len(facilities))
    return best
