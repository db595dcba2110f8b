"""Driver telemetry interface shared by real and demo providers."""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable

from geo.models import Location

logger = logging.getLogger(__name__)

PositionListener = Callable[[Location], None]


class DriverTelemetry(ABC):
    """Source of driver positions.

    Subscribers are called with every new position, in arrival order.
    """

    def __init__(self) -> None:
        self._position: Location | None = None
        self._listeners: list[PositionListener] = []

    @property
    def position(self) -> Location | None:
        return self._position

    def subscribe(self, listener: PositionListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @abstractmethod
    async def start(self) -> None: ...

    @abstractmethod
    async def stop(self) -> None: ...

    def _publish(self, position: Location) -> None:
        self._position = position
        for listener in list(self._listeners):
            try:
                listener(position)
            except Exception:
                logger.exception("Driver position listener failed")
