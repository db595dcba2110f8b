from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConnectionSettings(BaseSettings):
    """Realtime channel configuration.

    An empty ``url`` is valid: the connection manager then stays
    disconnected and live tracking is simply unavailable.
    """

    url: str = ""
    user_type: Literal["passenger", "driver"] = "passenger"
    user_id: int | None = Field(default=None, gt=0)
    open_timeout: float = Field(default=10.0, ge=1.0, le=120.0)

    # Reconnect backoff
    reconnect_base_delay: float = Field(
        default=3.0,
        ge=0.01,
        le=60.0,
        description="Delay before the first reconnect attempt, in seconds",
    )
    reconnect_multiplier: float = Field(default=2.0, ge=1.0, le=5.0)
    reconnect_max_delay: float = Field(
        default=60.0,
        ge=1.0,
        le=3600.0,
        description="Ceiling on the delay between reconnect attempts, in seconds",
    )
    reconnect_jitter: float = Field(
        default=0.2,
        ge=0.0,
        le=0.9,
        description="Fraction by which a reconnect delay may be randomly shortened",
    )
    reconnect_max_attempts: int | None = Field(
        default=None,
        ge=1,
        description="Give up after this many consecutive failed reconnects. None retries forever.",
    )

    model_config = SettingsConfigDict(env_prefix="WS_")

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if v and not v.startswith(("ws://", "wss://")):
            raise ValueError("WebSocket URL must start with ws:// or wss://")
        return v


class RidesAPISettings(BaseSettings):
    base_url: str = "http://localhost:5000"
    timeout: float = Field(default=10.0, ge=0.5, le=120.0)

    # Retry configuration for GET requests
    max_retries: int = Field(default=3, ge=1, le=10)
    retry_base_delay: float = Field(default=0.5, ge=0.1, le=5.0)
    retry_multiplier: float = Field(default=2.0, ge=1.0, le=5.0)

    # Staleness windows
    route_stale_seconds: float = Field(
        default=300.0,
        ge=0.0,
        description="Age after which a cached route summary is refetched",
    )
    rides_stale_seconds: float = Field(
        default=60.0,
        ge=0.0,
        description="Age after which cached ride options are refetched",
    )

    model_config = SettingsConfigDict(env_prefix="RIDES_API_")

    @field_validator("base_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError("Rides API base URL must start with http:// or https://")
        return v.rstrip("/")


class MapSettings(BaseSettings):
    """Map rendering configuration.

    A missing ``api_key`` is a supported degraded state, never a startup
    failure.
    """

    provider: Literal["tile", "static", "fallback"] = "tile"
    api_key: str = ""
    output_dir: str = "./maps"
    tile_layer: str = "OpenStreetMap"
    static_width: int = Field(default=640, ge=100, le=2048)
    static_height: int = Field(default=480, ge=100, le=2048)
    static_timeout: float = Field(default=10.0, ge=0.5, le=60.0)

    model_config = SettingsConfigDict(env_prefix="MAP_")


class NotificationSettings(BaseSettings):
    """Without a ``push_public_key`` native notifications are disabled and
    only toasts are shown; a supported degraded state."""

    push_public_key: str = ""
    max_notifications: int = Field(default=50, ge=1, le=1000)

    model_config = SettingsConfigDict(env_prefix="NOTIFY_")


class TelemetrySettings(BaseSettings):
    provider: Literal["websocket", "simulated"] = "websocket"
    simulated_tick_seconds: float = Field(default=1.0, gt=0.0, le=60.0)

    model_config = SettingsConfigDict(env_prefix="TELEMETRY_")


class LogSettings(BaseSettings):
    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    format: Literal["text", "json"] = "text"

    model_config = SettingsConfigDict(env_prefix="LOG_")


class Settings(BaseSettings):
    environment: Literal["development", "staging", "production"] = "development"
    connection: ConnectionSettings = Field(default_factory=ConnectionSettings)
    rides_api: RidesAPISettings = Field(default_factory=RidesAPISettings)
    map: MapSettings = Field(default_factory=MapSettings)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        case_sensitive=False,
    )


def get_settings() -> Settings:
    """Load and validate settings from environment variables."""
    return Settings()
