"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DP_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Dispatch Planner API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for submitted batch outputs.")
    assumed_speed_kmh: float = Field(
        default=30.0,
        gt=0.0,
        description="Average urban speed used to turn straight-line distance into driving time.",
    )
    dwell_minutes_per_stop: float = Field(
        default=20.0,
        ge=0.0,
        description="Flat service time spent at each facility stop.",
    )
    sequencing_strategy: Literal["nearest_neighbor", "two_opt", "ortools"] = Field(
        default="nearest_neighbor",
        description="Stop ordering strategy used when a batch route is recomputed.",
    )
    solver_time_limit_seconds: int = Field(default=5, ge=0)
    max_tiers: int = Field(default=10, ge=1)
    tier_capacity_tolerance_pct: float = Field(default=5.0, ge=0.0)
    workflow_order: Literal["vehicle_first", "legacy_facilities_first"] = Field(
        default="vehicle_first",
        description="Step order of the batch planning workflow.",
    )
    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
            "http://localhost:8080",
        ),
        description="Permitted web origins for browser clients (CORS).",
    )

    # Supabase configuration
    supabase_url: Optional[str] = Field(
        default=None,
        description="Supabase project URL (e.g., https://xxx.supabase.co).",
    )
    supabase_key: Optional[str] = Field(
        default=None,
        description="Supabase service role key for backend operations.",
    )
    batches_table: str = Field(default="delivery_batches")

    @field_validator("data_root", mode="before")
    @classmethod
    def _expand_path(cls, value: Any) -> Path:
        path_value = value if isinstance(value, Path) else Path(str(value))
        return path_value.expanduser().resolve()

    @field_validator("frontend_allowed_origins", mode="before")
    @classmethod
    def _parse_str_tuple_from_env(cls, value: Any) -> tuple[str, ...]:
        """Parse string tuple from environment variable (comma-separated or JSON array)."""
        if isinstance(value, tuple):
            return value
        if isinstance(value, list):
            return tuple(str(item) for item in value)
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
                if isinstance(parsed, list):
                    return tuple(str(item) for item in parsed)
            except (json.JSONDecodeError, TypeError):
                pass
            if "," in value:
                return tuple(item.strip() for item in value.split(",") if item.strip())
            if value.strip():
                return (value.strip(),)
        return tuple()

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)


settings = Settings()
