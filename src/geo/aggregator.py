"""Location aggregation for the map layer.

Combines the fixed pickup point, the destination and the running driver
position into one snapshot, derives distances and ETAs, and republishes
the snapshot to subscribers (map renderers, arrival notifications).
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Literal

from geo.distance import (
    estimate_eta_minutes,
    haversine_distance_km,
    is_within_proximity,
    round_half_up,
)
from geo.models import Location, RouteInfo

if TYPE_CHECKING:
    from telemetry.base import DriverTelemetry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RouteEstimate:
    distance_km: float
    eta_minutes: int
    source: Literal["estimate", "directions"] = "estimate"


def estimate_route(origin: Location, destination: Location) -> RouteEstimate:
    """Straight-line distance and ETA between two locations."""
    distance_km = haversine_distance_km(origin.lat, origin.lng, destination.lat, destination.lng)
    return RouteEstimate(distance_km=distance_km, eta_minutes=estimate_eta_minutes(distance_km))


@dataclass(frozen=True)
class LocationSnapshot:
    origin: Location | None = None
    destination: Location | None = None
    driver: Location | None = None
    estimate: RouteEstimate | None = None
    route: RouteInfo | None = None
    arrival_threshold_m: float = 50.0

    @property
    def driver_distance_km(self) -> float | None:
        if self.driver is None or self.origin is None:
            return None
        return haversine_distance_km(
            self.driver.lat, self.driver.lng, self.origin.lat, self.origin.lng
        )

    @property
    def driver_eta_minutes(self) -> int | None:
        distance = self.driver_distance_km
        return None if distance is None else estimate_eta_minutes(distance)

    @property
    def driver_arrived(self) -> bool:
        if self.driver is None or self.origin is None:
            return False
        return is_within_proximity(
            self.driver.lat,
            self.driver.lng,
            self.origin.lat,
            self.origin.lng,
            self.arrival_threshold_m,
        )


SnapshotListener = Callable[[LocationSnapshot], None]


class LocationAggregator:
    def __init__(
        self,
        origin: Location | None = None,
        destination: Location | None = None,
        arrival_threshold_m: float = 50.0,
    ):
        self._origin = origin
        self._destination = destination
        self._driver: Location | None = None
        self._route: RouteInfo | None = None
        self._arrival_threshold_m = arrival_threshold_m
        self._listeners: list[SnapshotListener] = []
        self._telemetry_unsubscribe: Callable[[], None] | None = None

    @property
    def snapshot(self) -> LocationSnapshot:
        return LocationSnapshot(
            origin=self._origin,
            destination=self._destination,
            driver=self._driver,
            estimate=self._estimate(),
            route=self._route,
            arrival_threshold_m=self._arrival_threshold_m,
        )

    def subscribe(self, listener: SnapshotListener) -> Callable[[], None]:
        """Register a snapshot listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_origin(self, origin: Location | None) -> None:
        if origin == self._origin:
            return
        self._origin = origin
        self._route = None
        self._publish()

    def set_destination(self, destination: Location | None) -> None:
        if destination == self._destination:
            return
        self._destination = destination
        self._route = None
        self._publish()

    def update_driver_location(self, driver: Location) -> None:
        self._driver = driver
        self._publish()

    def clear_driver(self) -> None:
        if self._driver is None:
            return
        self._driver = None
        self._publish()

    def apply_route_info(self, route: RouteInfo) -> None:
        """Replace the straight-line estimate with a directions result."""
        matches = route.origin.same_point(self._origin) and route.destination.same_point(
            self._destination
        )
        if not matches:
            logger.debug("Ignoring route info for a different origin/destination")
            return
        self._route = route
        self._publish()

    def attach(self, telemetry: "DriverTelemetry") -> None:
        """Follow driver positions published by a telemetry provider."""
        self.detach()
        self._telemetry_unsubscribe = telemetry.subscribe(self.update_driver_location)

    def detach(self) -> None:
        if self._telemetry_unsubscribe is not None:
            self._telemetry_unsubscribe()
            self._telemetry_unsubscribe = None

    def _estimate(self) -> RouteEstimate | None:
        if self._route is not None:
            return RouteEstimate(
                distance_km=self._route.distance,
                eta_minutes=round_half_up(self._route.duration),
                source="directions",
            )
        if self._origin is None or self._destination is None:
            return None
        return estimate_route(self._origin, self._destination)

    def _publish(self) -> None:
        snapshot = self.snapshot
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Location snapshot listener failed")
