"""Common interface for map rendering backends."""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from geo.models import Location, RouteInfo


@dataclass(frozen=True)
class MapRender:
    """Outcome of one render.

    ``output`` is a file path (tile and static backends) or None; ``text``
    holds the fallback view. ``fallback_reason`` is set whenever a map
    could not be produced and the fallback view was shown instead.
    """

    backend: str
    output: str | None = None
    text: str | None = None
    fallback_reason: str | None = None

    @property
    def degraded(self) -> bool:
        return self.fallback_reason is not None


class MapRenderer(ABC):
    name: str = "base"

    @abstractmethod
    async def render_locations(
        self,
        origin: Location | None,
        destination: Location | None,
        driver: Location | None = None,
        route: RouteInfo | None = None,
    ) -> MapRender:
        """Draw pickup, destination, driver and route with this backend."""


def collect_points(
    origin: Location | None,
    destination: Location | None,
    driver: Location | None,
    route: RouteInfo | None = None,
) -> list[tuple[float, float]]:
    """All coordinates that must be visible on the map."""
    points = [loc.coords for loc in (origin, destination, driver) if loc is not None]
    if route is not None:
        points.extend(route.geometry)
    return points


def bounds(points: list[tuple[float, float]]) -> list[list[float]]:
    """South-west and north-east corners enclosing ``points``."""
    lats = [lat for lat, _ in points]
    lngs = [lng for _, lng in points]
    return [[min(lats), min(lngs)], [max(lats), max(lngs)]]
