"""Re-render the map whenever the location snapshot changes."""

import asyncio
import contextlib
import logging
from collections.abc import Callable

from geo.aggregator import LocationAggregator, LocationSnapshot
from maps.base import MapRender, MapRenderer

logger = logging.getLogger(__name__)


class MapSubscriber:
    """Keeps one render in flight; snapshots arriving meanwhile collapse
    into a single follow-up render of the newest one."""

    def __init__(self, renderer: MapRenderer, aggregator: LocationAggregator):
        self.renderer = renderer
        self.aggregator = aggregator
        self.last_render: MapRender | None = None
        self._pending: LocationSnapshot | None = None
        self._task: asyncio.Task[None] | None = None
        self._unsubscribe: Callable[[], None] | None = None

    def start(self) -> None:
        if self._unsubscribe is not None:
            return
        self._unsubscribe = self.aggregator.subscribe(self._on_snapshot)
        self._on_snapshot(self.aggregator.snapshot)

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._pending = None
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None

    async def wait_idle(self) -> MapRender | None:
        """Wait for the in-flight render (and any queued follow-up) to finish."""
        while self._task is not None and not self._task.done():
            await asyncio.shield(self._task)
        return self.last_render

    def _on_snapshot(self, snapshot: LocationSnapshot) -> None:
        self._pending = snapshot
        if self._task is None or self._task.done():
            self._task = asyncio.get_running_loop().create_task(self._drain())

    async def _drain(self) -> None:
        while self._pending is not None:
            snapshot, self._pending = self._pending, None
            try:
                self.last_render = await self.renderer.render_locations(
                    snapshot.origin, snapshot.destination, snapshot.driver, snapshot.route
                )
            except Exception:
                logger.exception(f"Map render with {self.renderer.name} backend failed")
                continue
            if self.last_render.degraded:
                logger.info(f"Map degraded: {self.last_render.fallback_reason}")
