"""Plain address-card view used when no map can be drawn."""

import logging

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from geo.aggregator import estimate_route
from geo.distance import round_half_up
from geo.models import Location, RouteInfo
from maps.base import MapRender, MapRenderer

logger = logging.getLogger(__name__)

UNAVAILABLE_TITLE = "Map temporarily unavailable"


class FallbackRenderer(MapRenderer):
    """Shows the same location data as text cards.

    This is a supported display mode, not an error page: bookings can be
    made from the information shown here.
    """

    name = "fallback"

    def __init__(self, console: Console | None = None, width: int = 80):
        self._console = console
        self._width = width

    async def render_locations(
        self,
        origin: Location | None,
        destination: Location | None,
        driver: Location | None = None,
        route: RouteInfo | None = None,
    ) -> MapRender:
        return self.render_cards(origin, destination, driver, route)

    def render_cards(
        self,
        origin: Location | None,
        destination: Location | None,
        driver: Location | None = None,
        route: RouteInfo | None = None,
        reason: str | None = None,
    ) -> MapRender:
        cards = Table.grid(padding=(0, 2))
        cards.add_column(style="bold")
        cards.add_column()
        if origin is not None:
            cards.add_row("Pickup Location", origin.display_label())
        if destination is not None:
            cards.add_row("Destination", destination.display_label())
        if driver is not None:
            cards.add_row("Driver", driver.display_label())

        parts: list[Text | Table] = []
        if reason:
            parts.append(Text(reason, style="yellow"))
        parts.append(
            Text("You can still book rides using the location information below.")
        )
        parts.append(cards)

        summary = self._summary(origin, destination, route)
        if summary:
            parts.append(Text(summary, style="dim"))

        recorder = Console(record=True, width=self._width, color_system=None)
        panel = Panel(Group(*parts), title=UNAVAILABLE_TITLE)
        recorder.print(panel)
        if self._console is not None:
            self._console.print(panel)

        return MapRender(
            backend=self.name,
            text=recorder.export_text(),
            fallback_reason=reason or "Map rendering disabled",
        )

    @staticmethod
    def _summary(
        origin: Location | None, destination: Location | None, route: RouteInfo | None
    ) -> str | None:
        if route is not None:
            return f"{route.distance:.1f} km, about {round_half_up(route.duration)} min"
        if origin is None or destination is None:
            return None
        estimate = estimate_route(origin, destination)
        return f"{estimate.distance_km:.1f} km, about {estimate.eta_minutes} min"
