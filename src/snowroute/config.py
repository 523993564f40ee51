"""Application configuration and settings management."""

from pathlib import Path
from typing import Any, Optional

import json
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration loaded from environment variables or defaults."""

    model_config = SettingsConfigDict(
        env_prefix="SNOWROUTE_",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    app_name: str = "Snow Route Field API"
    api_prefix: str = "/api"
    data_root: Path = Field(default=Path("data"), description="Root directory for local state and route exports.")
    check_in_state_file: Path = Field(
        default=Path("data/check_in_state.json"),
        description="Key-value file holding persisted check-in state per worker and work category.",
    )
    geolocation_enable_high_accuracy: bool = Field(default=True)
    geolocation_timeout_ms: int = Field(default=10_000, ge=0)
    geolocation_max_cache_age_ms: int = Field(default=0, ge=0)
    high_accuracy_max_meters: float = Field(
        default=100.0,
        ge=0.0,
        description="Cached reports less accurate than this are not served to high-accuracy requests.",
    )
    minutes_per_stop: int = Field(default=15, ge=0, description="Service time estimate per remaining stop.")
    check_in_radius_meters: float = Field(
        default=250.0,
        ge=0.0,
        description="GPS-stamped check-ins farther than this from the site are flagged.",
    )
    route_start_max_age_ms: int = Field(
        default=300_000,
        ge=0,
        description="Reported positions older than this are not used as a route start.",
    )
    persist_route_outputs: bool = Field(default=False)
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

    @field_validator("data_root", "check_in_state_file", mode="before")
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
