"""Driver telemetry providers."""

from typing import TYPE_CHECKING

from core.exceptions import ConfigurationError
from geo.models import Location

from .base import DriverTelemetry
from .simulated import SimulatedDriverTelemetry
from .websocket import WebSocketDriverTelemetry

if TYPE_CHECKING:
    from realtime.connection import ConnectionManager
    from settings import Settings


def create_driver_telemetry(
    settings: "Settings",
    manager: "ConnectionManager",
    target: Location,
    driver_id: int | None = None,
) -> DriverTelemetry:
    """Build the configured telemetry provider.

    Raises:
        ConfigurationError: the simulated provider was requested in production.
    """
    if settings.telemetry.provider == "simulated":
        if settings.environment == "production":
            raise ConfigurationError(
                "Simulated driver telemetry is not available in production",
                details={"provider": settings.telemetry.provider},
            )
        return SimulatedDriverTelemetry(
            target, tick_seconds=settings.telemetry.simulated_tick_seconds
        )
    return WebSocketDriverTelemetry(manager, driver_id=driver_id)


__all__ = [
    "DriverTelemetry",
    "SimulatedDriverTelemetry",
    "WebSocketDriverTelemetry",
    "create_driver_telemetry",
]
