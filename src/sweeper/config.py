"""Application configuration and settings management."""

from typing import Annotated, Any, Literal, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SWEEPER_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Sweeper Dispatch API"
    api_prefix: str = "/api"
    mapbox_access_token: Optional[str] = Field(
        default=None,
        description="Access token for the Mapbox directions, optimization and geocoding APIs.",
    )
    mapbox_base_url: str = Field(
        default="https://api.mapbox.com",
        description="Base URL for the Mapbox APIs.",
    )
    routing_profile: Literal["driving", "driving-traffic", "walking", "cycling"] = Field(
        default="driving",
        description="Routing profile to use when computing travel times.",
    )
    routing_geometries: Literal["geojson", "polyline"] = Field(
        default="geojson",
        description="Geometry encoding requested from the routing provider.",
    )
    routing_timeout_seconds: float = Field(default=30.0, gt=0.0)
    service_area_center: Annotated[tuple[float, float], NoDecode] = Field(
        default=(27.5306, -99.4803),
        description="(latitude, longitude) of the service area center.",
    )
    service_area_radius_miles: float = Field(default=25.0, gt=0.0)
    google_maps_base_url: str = "https://maps.google.com/maps"
    eta_time_format: str = Field(default="%I:%M %p", description="strftime format for stop ETAs.")
    frontend_allowed_origins: Annotated[tuple[str, ...], NoDecode] = Field(
        default=(
            "http://localhost:5173",
            "http://127.0.0.1:5173",
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

    @field_validator("service_area_center", mode="before")
    @classmethod
    def _parse_center_from_env(cls, value: Any) -> tuple[float, float]:
        """Parse a "lat,lng" pair from a comma-separated string or JSON array."""
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except (json.JSONDecodeError, TypeError):
                parsed = [item.strip() for item in value.split(",") if item.strip()]
            value = parsed
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return (float(value[0]), float(value[1]))
        raise ValueError("service_area_center must be a (latitude, longitude) pair.")


settings = Settings()
