"""Pydantic request/response models for allocation, sequencing and batch endpoints.

These models are the typed ingestion boundary: vehicle tier configuration
arrives as loosely shaped JSON (``tiered_config: {"tiers": [...]}``) and is
validated here instead of being read with unchecked casts.
"""

from __future__ import annotations

from datetime import date, time
from typing import Any, List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from ..errors import InvalidTierConfiguration
from ..models.domain import Coordinate, Facility, Tier, VehicleCapacity, Warehouse

StrategyName = Literal["nearest_neighbor", "two_opt", "ortools"]
WorkflowOrderName = Literal["vehicle_first", "legacy_facilities_first"]


def _lift_flat_coordinate(data: Any) -> Any:
    """Accept ``{"lat": .., "lng": ..}`` on the record itself as well as a nested ``coordinate``."""
    if not isinstance(data, dict) or "coordinate" in data:
        return data
    if "lat" in data or "lng" in data:
        data = dict(data)
        lat, lng = data.pop("lat", None), data.pop("lng", None)
        data["coordinate"] = None if lat is None or lng is None else {"lat": lat, "lng": lng}
    return data


class CoordinateModel(BaseModel):
    lat: float = Field(..., ge=-90.0, le=90.0)
    lng: float = Field(..., ge=-180.0, le=180.0)

    def to_domain(self) -> Coordinate:
        return Coordinate(lat=self.lat, lng=self.lng)


class TierModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, validation_alias=AliasChoices("name", "tier_name"))
    order: int = Field(..., validation_alias=AliasChoices("order", "tier_order"))
    # Onboarding may save a tier before its slot count is set
    slot_count: int = Field(default=0, ge=0)
    capacity_kg: Optional[float] = Field(
        default=None, ge=0.0, validation_alias=AliasChoices("capacity_kg", "max_weight_kg")
    )
    capacity_m3: Optional[float] = Field(
        default=None, ge=0.0, validation_alias=AliasChoices("capacity_m3", "max_volume_m3")
    )

    @field_validator("slot_count", mode="before")
    @classmethod
    def _missing_slot_count(cls, value: Any) -> Any:
        return 0 if value is None else value

    def to_domain(self) -> Tier:
        return Tier(
            name=self.name.strip(),
            order=self.order,
            slot_count=self.slot_count,
            capacity_kg=self.capacity_kg,
            capacity_m3=self.capacity_m3,
        )


class VehicleCapacityModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    vehicle_id: str = Field(..., min_length=1, validation_alias=AliasChoices("vehicle_id", "id"))
    tiers: List[TierModel] = Field(default_factory=list)
    volume_m3: float = Field(default=0.0, ge=0.0, validation_alias=AliasChoices("volume_m3", "capacity_m3"))
    max_weight_kg: float = Field(default=0.0, ge=0.0, validation_alias=AliasChoices("max_weight_kg", "capacity_kg"))

    @model_validator(mode="before")
    @classmethod
    def _unwrap_tiered_config(cls, data: Any) -> Any:
        if not isinstance(data, dict) or "tiered_config" not in data:
            return data
        data = dict(data)
        config = data.pop("tiered_config")
        if "tiers" in data:
            return data
        if config is None:
            data["tiers"] = []
        elif isinstance(config, list):
            data["tiers"] = config
        elif isinstance(config, dict) and isinstance(config.get("tiers", []), list):
            data["tiers"] = config.get("tiers", [])
        else:
            raise ValueError("tiered_config must be a list of tiers or an object with a 'tiers' list")
        return data

    @field_validator("tiers")
    @classmethod
    def _unique_tier_names(cls, tiers: List[TierModel]) -> List[TierModel]:
        names = [tier.name.strip().lower() for tier in tiers]
        if len(names) != len(set(names)):
            raise ValueError("tier names must be unique within a vehicle")
        return tiers

    def to_domain(self) -> VehicleCapacity:
        return VehicleCapacity(
            vehicle_id=self.vehicle_id,
            tiers=tuple(tier.to_domain() for tier in self.tiers),
            volume_m3=self.volume_m3,
            max_weight_kg=self.max_weight_kg,
        )


def parse_vehicle_capacity(raw: Any) -> VehicleCapacity:
    """Validate a raw vehicle record, raising InvalidTierConfiguration when it is malformed."""
    try:
        return VehicleCapacityModel.model_validate(raw).to_domain()
    except ValidationError as exc:
        raise InvalidTierConfiguration(f"Invalid vehicle capacity configuration: {exc}") from exc


class FacilityModel(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    coordinate: Optional[CoordinateModel] = None

    @model_validator(mode="before")
    @classmethod
    def _lift_coordinate(cls, data: Any) -> Any:
        return _lift_flat_coordinate(data)

    def to_domain(self) -> Facility:
        return Facility(
            id=self.id,
            name=self.name or self.id,
            coordinate=self.coordinate.to_domain() if self.coordinate else None,
        )


class WarehouseModel(BaseModel):
    id: str = Field(..., min_length=1)
    name: str = ""
    coordinate: CoordinateModel

    @model_validator(mode="before")
    @classmethod
    def _lift_coordinate(cls, data: Any) -> Any:
        return _lift_flat_coordinate(data)

    def to_domain(self) -> Warehouse:
        return Warehouse(id=self.id, name=self.name or self.id, coordinate=self.coordinate.to_domain())


class AllocationRequest(BaseModel):
    vehicle: VehicleCapacityModel
    required_slots: int = Field(..., ge=0)


class TierAllocationModel(BaseModel):
    tier_name: str
    slots_in_tier: int
    slots_allocated: int


class AllocationResponse(BaseModel):
    total_slots: int
    required_slots: int
    per_tier: List[TierAllocationModel]
    is_overflow: bool
    overflow_count: int
    utilization_pct: int
    utilization_status: str
    warnings: List[str] = Field(default_factory=list)


class SequenceRequest(BaseModel):
    origin: CoordinateModel
    facilities: List[FacilityModel]
    strategy: Optional[StrategyName] = None
    assumed_speed_kmh: Optional[float] = Field(default=None, gt=0.0)
    dwell_minutes_per_stop: Optional[float] = Field(default=None, ge=0.0)


class RouteStopModel(BaseModel):
    facility_id: str
    sequence: int
    distance_from_prev_km: float
    cumulative_distance_km: float
    arrival_min: float


class RouteResponse(BaseModel):
    ordered_facility_ids: List[str]
    total_distance_km: float
    estimated_duration_min: float
    skipped_facility_ids: List[str]
    stops: List[RouteStopModel]
    strategy: str


class BatchDraftRequest(BaseModel):
    name: Optional[str] = None
    scheduled_date: Optional[date] = None
    scheduled_time: Optional[time] = None
    priority: Literal["low", "medium", "high", "urgent"] = "medium"
    notes: Optional[str] = Field(default=None, description="Free-form notes captured with the batch.")
    driver_id: Optional[str] = None
    vehicle: Optional[VehicleCapacityModel] = None
    warehouse: Optional[WarehouseModel] = None
    candidate_warehouses: List[WarehouseModel] = Field(
        default_factory=list,
        description="Warehouses to choose the origin from when no warehouse is given.",
    )
    facilities: List[FacilityModel] = Field(default_factory=list)
    workflow_order: Optional[WorkflowOrderName] = Field(
        default=None,
        description="Step order to validate against; defaults to the configured order.",
    )
    sequencing_strategy: Optional[StrategyName] = None


class GateResultModel(BaseModel):
    step: str
    passed: bool
    failures: List[str]
    messages: List[str]


class BatchPreviewResponse(BaseModel):
    current_step: str
    ready: bool
    gates: List[GateResultModel]
    plan: dict


class BatchSubmitResponse(BaseModel):
    batch_id: str
    status: str
    sink: str
    record: dict
