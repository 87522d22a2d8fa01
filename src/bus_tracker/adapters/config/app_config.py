"""12-factor configuration adapter using environment variables and optional TOML config."""

import tomllib
from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from bus_tracker.adapters.bt4u_api.constants import BT4U_BASE_URL


class AppConfig(BaseSettings):
    """Application configuration following 12-factor principles."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        validate_assignment=True,
    )

    # Live bus polling
    bus_poll_interval_ms: int = Field(
        default=10000, description="Interval between bus position updates in milliseconds"
    )
    watch_routes: list[str] = Field(
        default_factory=list,
        description="Route short names whose buses are logged by the tracker process",
    )

    # BT4U feed
    bt4u_base_url: str = Field(default=BT4U_BASE_URL, description="BT4U web service URL")
    bt4u_timeout_seconds: float = Field(
        default=10.0, description="Timeout for BT4U requests in seconds"
    )
    bt4u_min_delay_seconds: float = Field(
        default=0.5,
        description="Minimum delay between two BT4U requests, shared by all routes",
    )

    # Favorites and session
    credentials_file: str = Field(
        default="~/.bus_tracker/credentials.json",
        description="File holding the last OAuth token and user email for session resumption",
    )
    geofence_radius_meters: float = Field(
        default=100.0, description="Radius of the proximity trigger around favorite stops"
    )

    # Optional TOML file overriding the [tracking] settings
    config_file: str | None = Field(
        default=None,
        description="Path to TOML configuration file",
    )

    @classmethod
    def for_testing(cls, **overrides: Any) -> "AppConfig":
        """Create a config that ignores the .env file."""
        return cls(_env_file=None, **overrides)  # type: ignore[call-arg]

    @field_validator("bus_poll_interval_ms")
    @classmethod
    def validate_poll_interval(cls, v: int) -> int:
        """Validate the poll interval is positive."""
        if v <= 0:
            raise ValueError("bus_poll_interval_ms must be positive")
        return v

    @field_validator("watch_routes")
    @classmethod
    def validate_watch_routes(cls, v: list[str]) -> list[str]:
        """Strip route names and drop empty ones."""
        return [route.strip() for route in v if route.strip()]

    @property
    def bus_poll_interval_seconds(self) -> float:
        return self.bus_poll_interval_ms / 1000

    def load_toml(self) -> dict[str, Any]:
        """Load the TOML file and apply its [tracking] section.

        Returns:
            The parsed TOML data.

        Raises:
            ValueError: If no config file is set or a value is invalid.
            FileNotFoundError: If the config file does not exist.
        """
        if not self.config_file:
            raise ValueError("config_file must be set to load TOML configuration")

        config_path = Path(self.config_file)
        if not config_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {config_path}")

        with open(config_path, "rb") as f:
            toml_data = tomllib.load(f)

        tracking = toml_data.get("tracking", {})
        if not isinstance(tracking, dict):
            raise ValueError("TOML config 'tracking' must be a table")
        if "routes" in tracking:
            routes = tracking["routes"]
            if not isinstance(routes, list):
                raise ValueError("TOML config 'tracking.routes' must be a list")
            self.watch_routes = [str(r) for r in routes]
        if "poll_interval_ms" in tracking:
            self.bus_poll_interval_ms = int(tracking["poll_interval_ms"])
        if "geofence_radius_meters" in tracking:
            self.geofence_radius_meters = float(tracking["geofence_radius_meters"])

        return toml_data
