"""Tile-based map written as a standalone Leaflet HTML page."""

import asyncio
import logging
from pathlib import Path

import folium

from geo.models import Location, RouteInfo
from maps.base import MapRender, MapRenderer, bounds, collect_points
from maps.fallback import FallbackRenderer

logger = logging.getLogger(__name__)

PICKUP_COLOR = "green"
DESTINATION_COLOR = "blue"
DRIVER_COLOR = "orange"
ROUTE_COLOR = "#3B82F6"
MAX_ZOOM = 16


class TileMapRenderer(MapRenderer):
    name = "tile"

    def __init__(
        self,
        output_dir: str | Path,
        tiles: str = "OpenStreetMap",
        filename: str = "ride_map.html",
        fallback: FallbackRenderer | None = None,
    ):
        self.output_path = Path(output_dir) / filename
        self.tiles = tiles
        self._fallback = fallback or FallbackRenderer()

    def build_map(
        self,
        origin: Location | None,
        destination: Location | None,
        driver: Location | None = None,
        route: RouteInfo | None = None,
    ) -> folium.Map:
        points = collect_points(origin, destination, driver, route)
        if not points:
            raise ValueError("Nothing to draw: no locations given")

        m = folium.Map(location=list(points[0]), zoom_start=MAX_ZOOM, tiles=self.tiles)

        if origin is not None:
            folium.Marker(
                location=list(origin.coords),
                tooltip="Pickup Location",
                popup=origin.display_label(),
                icon=folium.Icon(color=PICKUP_COLOR, icon="user", prefix="fa"),
            ).add_to(m)
        if destination is not None:
            folium.Marker(
                location=list(destination.coords),
                tooltip="Destination",
                popup=destination.display_label(),
                icon=folium.Icon(color=DESTINATION_COLOR, icon="flag", prefix="fa"),
            ).add_to(m)
        if driver is not None:
            folium.Marker(
                location=list(driver.coords),
                tooltip="Driver",
                icon=folium.Icon(color=DRIVER_COLOR, icon="car", prefix="fa"),
            ).add_to(m)

        if route is not None:
            path = route.path()
        elif origin is not None and destination is not None:
            path = [origin.coords, destination.coords]
        else:
            path = []
        if len(path) >= 2:
            folium.PolyLine(
                locations=[list(p) for p in path],
                color=ROUTE_COLOR,
                weight=4,
                opacity=0.8,
            ).add_to(m)

        if len(points) >= 2:
            m.fit_bounds(bounds(points), max_zoom=MAX_ZOOM)

        return m

    async def render_locations(
        self,
        origin: Location | None,
        destination: Location | None,
        driver: Location | None = None,
        route: RouteInfo | None = None,
    ) -> MapRender:
        if origin is None and destination is None and driver is None:
            return self._fallback.render_cards(
                origin, destination, driver, route, reason="No locations to display"
            )

        m = self.build_map(origin, destination, driver, route)
        try:
            self.output_path.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(m.save, str(self.output_path))
        except OSError as e:
            logger.error(f"Could not write map to {self.output_path}: {e}")
            return self._fallback.render_cards(
                origin, destination, driver, route, reason=f"Could not save map: {e}"
            )

        logger.debug(f"Map written to {self.output_path}")
        return MapRender(backend=self.name, output=str(self.output_path))
