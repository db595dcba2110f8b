"""Demo driver that drives straight at the pickup point.

For demos and tests only; never selected in production (see
``telemetry.create_driver_telemetry``).
"""

import asyncio
import contextlib
import logging
import math
import random

from geo.models import Location
from telemetry.base import DriverTelemetry

logger = logging.getLogger(__name__)


class SimulatedDriverTelemetry(DriverTelemetry):
    def __init__(
        self,
        target: Location,
        step: float = 0.0003,
        arrival_threshold: float = 0.0005,
        tick_seconds: float = 1.0,
        spread: float = 0.005,
        rng: random.Random | None = None,
    ):
        super().__init__()
        self.target = target
        self.step_degrees = step
        self.arrival_threshold = arrival_threshold
        self.tick_seconds = tick_seconds
        self._rng = rng or random.Random()
        self._arrived = False
        self._task: asyncio.Task[None] | None = None
        self._current = Location(
            lat=target.lat + self._rng.uniform(-spread, spread),
            lng=target.lng + self._rng.uniform(-spread, spread),
        )

    @property
    def position(self) -> Location:
        return self._current

    @property
    def arrived(self) -> bool:
        return self._arrived

    def step(self) -> Location:
        """Advance one tick toward the target and publish the new position."""
        current = self._current
        if self._arrived:
            return current

        dlat = self.target.lat - current.lat
        dlng = self.target.lng - current.lng
        distance = math.hypot(dlat, dlng)

        if distance < self.arrival_threshold:
            self._arrived = True
            position = self.target
            logger.info("Simulated driver reached pickup")
        else:
            ratio = self.step_degrees / distance
            position = Location(lat=current.lat + dlat * ratio, lng=current.lng + dlng * ratio)

        self._current = position
        self._publish(position)
        return position

    async def start(self) -> None:
        if self._task is not None and not self._task.done():
            return
        self._publish(self._current)
        self._task = asyncio.create_task(self._drive())

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def _drive(self) -> None:
        while not self._arrived:
            await asyncio.sleep(self.tick_seconds)
            self.step()
