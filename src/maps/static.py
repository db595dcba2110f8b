"""Hosted static-map backend (Google Static Maps API).

Without an API key, or when the provider cannot be reached, the
fallback view is rendered instead.
"""

import logging
from pathlib import Path

import httpx
import polyline

from geo.models import Location, RouteInfo
from maps.base import MapRender, MapRenderer
from maps.fallback import FallbackRenderer

logger = logging.getLogger(__name__)

STATIC_MAPS_URL = "https://maps.googleapis.com/maps/api/staticmap"


def _marker(color: str, label: str, location: Location) -> str:
    return f"color:{color}|label:{label}|{location.lat:.6f},{location.lng:.6f}"


class StaticMapRenderer(MapRenderer):
    name = "static"

    def __init__(
        self,
        api_key: str,
        output_dir: str | Path,
        width: int = 640,
        height: int = 480,
        timeout: float = 10.0,
        filename: str = "ride_map.png",
        fallback: FallbackRenderer | None = None,
    ):
        self.api_key = api_key
        self.output_path = Path(output_dir) / filename
        self.width = width
        self.height = height
        self.timeout = timeout
        self._fallback = fallback or FallbackRenderer()

    def build_params(
        self,
        origin: Location | None,
        destination: Location | None,
        driver: Location | None = None,
        route: RouteInfo | None = None,
    ) -> list[tuple[str, str]]:
        """Query parameters; repeated keys are kept as separate pairs."""
        params = [("size", f"{self.width}x{self.height}")]
        if origin is not None:
            params.append(("markers", _marker("green", "A", origin)))
        if destination is not None:
            params.append(("markers", _marker("red", "B", destination)))
        if driver is not None:
            params.append(("markers", _marker("yellow", "D", driver)))

        if route is not None:
            path = route.path()
        elif origin is not None and destination is not None:
            path = [origin.coords, destination.coords]
        else:
            path = []
        if len(path) >= 2:
            params.append(("path", f"weight:4|color:0x3B82F6ff|enc:{polyline.encode(path)}"))

        params.append(("key", self.api_key))
        return params

    async def render_locations(
        self,
        origin: Location | None,
        destination: Location | None,
        driver: Location | None = None,
        route: RouteInfo | None = None,
    ) -> MapRender:
        if not self.api_key:
            return self._fallback.render_cards(
                origin, destination, driver, route, reason="Map API key not configured"
            )
        if origin is None and destination is None and driver is None:
            return self._fallback.render_cards(
                origin, destination, driver, route, reason="No locations to display"
            )

        params = self.build_params(origin, destination, driver, route)
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(STATIC_MAPS_URL, params=params)
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.warning(f"Static map request failed: {e}")
            return self._fallback.render_cards(
                origin, destination, driver, route, reason="Map provider unavailable"
            )

        if not response.headers.get("content-type", "").startswith("image/"):
            logger.warning("Static map provider returned a non-image response")
            return self._fallback.render_cards(
                origin, destination, driver, route, reason="Map provider unavailable"
            )

        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            self.output_path.write_bytes(response.content)
        except OSError as e:
            logger.error(f"Could not write map to {self.output_path}: {e}")
            return self._fallback.render_cards(
                origin, destination, driver, route, reason=f"Could not save map: {e}"
            )

        return MapRender(backend=self.name, output=str(self.output_path))
