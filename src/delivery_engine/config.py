"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="DELIVERY_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Warehouse Delivery Engine API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for static data files.")
    warehouses_file: Path = Field(
        default=Path("data/warehouses.json"),
        description="Warehouse seed file used when the database is not available.",
    )
    osrm_base_url: Optional[str] = Field(
        default="http://router.project-osrm.org",
        description="Base URL for the OSRM routing service.",
    )
    osrm_profile: Literal["driving", "driving-hgv"] = Field(
        default="driving",
        description="OSRM profile to use when computing travel times.",
    )
    osrm_enabled: bool = Field(default=True, description="Disable to always use the haversine estimate.")
    osrm_timeout_seconds: float = Field(default=15.0, gt=0.0)
    osrm_max_retries: int = Field(default=2, ge=0)
    osrm_backoff_seconds: float = Field(default=1.0, ge=0.0)
    fallback_speed_kmh: float = Field(
        default=30.0,
        gt=0.0,
        description="Average urban speed used to estimate duration when routing is unavailable.",
    )
    default_timezone: str = Field(default="Asia/Kolkata")
    default_max_delivery_radius_km: float = Field(default=50.0, ge=0.0)
    default_free_delivery_radius_km: float = Field(default=3.0, ge=0.0)
    max_parallel_quotes: int = Field(default=8, ge=1)

    # Charge policy used until an active policy is saved
    default_free_delivery_min_amount: float = Field(default=500.0, ge=0.0)
    default_base_charge: float = Field(default=20.0, ge=0.0)
    default_min_charge: float = Field(default=10.0, ge=0.0)
    default_max_charge: float = Field(default=100.0, ge=0.0)
    default_per_km_charge: float = Field(default=5.0, ge=0.0)

    frontend_allowed_origins: tuple[str, ...] = Field(
        default=(
            "http://localhost:3000",
            "http://127.0.0.1:3000",
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

    @field_validator("data_root", "warehouses_file", mode="before")
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


settings = Settings()
