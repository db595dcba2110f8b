"""Driver positions pushed by the server over the realtime channel."""

import logging
from collections.abc import Callable

from pydantic import ValidationError

from geo.models import Location
from realtime import messages
from realtime.connection import ConnectionManager
from realtime.messages import InboundMessage
from telemetry.base import DriverTelemetry

logger = logging.getLogger(__name__)


class WebSocketDriverTelemetry(DriverTelemetry):
    def __init__(self, manager: ConnectionManager, driver_id: int | None = None):
        super().__init__()
        self._manager = manager
        self._driver_id = driver_id
        self._remove_handler: Callable[[], None] | None = None

    @property
    def driver_id(self) -> int | None:
        return self._driver_id

    def follow(self, driver_id: int | None) -> None:
        """Track a different driver (None accepts every driver)."""
        self._driver_id = driver_id

    async def start(self) -> None:
        if self._remove_handler is None:
            self._remove_handler = self._manager.on(
                messages.DRIVER_LOCATION_UPDATE, self._on_location
            )

    async def stop(self) -> None:
        if self._remove_handler is not None:
            self._remove_handler()
            self._remove_handler = None

    def _on_location(self, message: InboundMessage) -> None:
        data = message.data if isinstance(message.data, dict) else {}
        if self._driver_id is not None and data.get("driverId") != self._driver_id:
            return
        try:
            position = Location(lat=data["lat"], lng=data["lng"])
        except (KeyError, ValidationError) as e:
            logger.warning(f"Discarding malformed driver location: {e}")
            return
        self._publish(position)
