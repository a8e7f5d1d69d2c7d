"""Exception types raised by the planning core."""

from __future__ import annotations


class PlanningError(Exception):
    """Base class for batch planning failures."""


class InvalidCoordinate(PlanningError, ValueError):
    """A latitude/longitude pair outside the valid range (or NaN)."""

    def __init__(self, lat: float, lng: float) -> None:
        super().__init__(f"Invalid coordinate (lat={lat}, lng={lng}); expected lat in [-90, 90], lng in [-180, 180].")
        self.lat = lat
        self.lng = lng


class InvalidTierConfiguration(PlanningError, ValueError):
    """Vehicle tier configuration that cannot be interpreted."""


class WorkflowTransitionError(PlanningError):
    """An operation that the planning workflow does not allow in its current state."""


class SubmitError(PlanningError):
    """The persistence sink refused or failed to store a batch."""


class SubmitConflict(SubmitError):
    """The sink rejected the batch because it conflicts with an existing one."""
