"""Ride options for the current route: fetch, sort, select, book."""

import logging
import time
import webbrowser
from collections.abc import Callable, Sequence
from typing import TYPE_CHECKING, get_args

from app_logging import log_ride_context
from core.exceptions import RideSyncError, StateError
from geo.models import Location, RouteInfo
from notifications.surfaces import LoggingToaster, Toaster
from rides.cache import StalenessCache
from rides.client import RidesApiClient
from rides.models import BookingResult, RideOption, SortMode

if TYPE_CHECKING:
    from notifications.store import NotificationStore

logger = logging.getLogger(__name__)

ROUTE_STALE_SECONDS = 5 * 60
RIDES_STALE_SECONDS = 60

RouteKey = tuple[float, float, float, float]


def sort_ride_options(options: Sequence[RideOption], mode: SortMode) -> list[RideOption]:
    """Return a new list sorted ascending by price or pickup time.

    The sort is stable, so ties keep the order the backend returned.
    """
    if mode == "price":
        return sorted(options, key=lambda option: option.price)
    return sorted(options, key=lambda option: option.estimated_pickup_time)


def _route_key(origin: Location, destination: Location) -> RouteKey:
    return (origin.lat, origin.lng, destination.lat, destination.lng)


class RideOptionsAggregator:
    """Holds the route query state and the selected offer.

    Each change of origin or destination starts a new generation: the
    selection is cleared, and responses still in flight for an older
    generation are discarded when they arrive.
    """

    def __init__(
        self,
        client: RidesApiClient,
        toaster: Toaster | None = None,
        notifications: "NotificationStore | None" = None,
        open_url: Callable[[str], object] = webbrowser.open_new_tab,
        route_stale_seconds: float = ROUTE_STALE_SECONDS,
        rides_stale_seconds: float = RIDES_STALE_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._client = client
        self._toaster = toaster or LoggingToaster()
        self._notifications = notifications
        self._open_url = open_url
        self._route_cache: StalenessCache[RouteInfo] = StalenessCache(route_stale_seconds, clock)
        self._rides_cache: StalenessCache[list[RideOption]] = StalenessCache(
            rides_stale_seconds, clock
        )

        self._origin: Location | None = None
        self._destination: Location | None = None
        self._route: RouteInfo | None = None
        self._options: list[RideOption] = []
        self._selected: RideOption | None = None
        self._sort_mode: SortMode = "price"
        self._generation = 0
        self._error: RideSyncError | None = None

        self.is_loading_route = False
        self.is_loading_rides = False
        self.is_booking = False

    # -- inputs --------------------------------------------------------------

    @property
    def origin(self) -> Location | None:
        return self._origin

    @property
    def destination(self) -> Location | None:
        return self._destination

    def set_origin(self, origin: Location | None) -> None:
        if origin == self._origin:
            return
        self._origin = origin
        self._inputs_changed()

    def set_destination(self, destination: Location | None) -> None:
        if destination == self._destination:
            return
        self._destination = destination
        self._inputs_changed()

    @property
    def sort_mode(self) -> SortMode:
        return self._sort_mode

    @sort_mode.setter
    def sort_mode(self, mode: SortMode) -> None:
        if mode not in get_args(SortMode):
            raise ValueError(f"Unknown sort mode: {mode}")
        self._sort_mode = mode

    # -- query state ---------------------------------------------------------

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def route(self) -> RouteInfo | None:
        return self._route

    @property
    def ride_options(self) -> list[RideOption]:
        return sort_ride_options(self._options, self._sort_mode)

    @property
    def error(self) -> RideSyncError | None:
        return self._error

    @property
    def selected_ride(self) -> RideOption | None:
        return self._selected

    def select_ride(self, option: RideOption | None) -> None:
        if option is not None and option not in self._options:
            raise StateError(f"Ride option {option.id} is not in the current results")
        self._selected = option

    async def refresh(self, force: bool = False) -> list[RideOption]:
        """Fetch the route, then ride options for it.

        Cached results are reused until their staleness window passes;
        ``force`` bypasses both caches.
        """
        if self._origin is None or self._destination is None:
            return []

        generation = self._generation
        origin, destination = self._origin, self._destination
        key = _route_key(origin, destination)

        route = None if force else self._route_cache.get(key)
        if route is None:
            self.is_loading_route = True
            try:
                route = await self._client.get_route(origin, destination)
            except RideSyncError as e:
                self._query_failed(generation, e)
                return []
            finally:
                if generation == self._generation:
                    self.is_loading_route = False
            if generation != self._generation:
                logger.info("Discarding route response for superseded query")
                return self.ride_options
            self._route_cache.put(key, route)
        self._route = route

        rides_key = (key, route.distance, route.duration)
        options = None if force else self._rides_cache.get(rides_key)
        if options is None:
            self.is_loading_rides = True
            try:
                options = await self._client.get_ride_options(origin, destination, route)
            except RideSyncError as e:
                self._query_failed(generation, e)
                return []
            finally:
                if generation == self._generation:
                    self.is_loading_rides = False
            if generation != self._generation:
                logger.info("Discarding ride options for superseded query")
                return self.ride_options
            self._rides_cache.put(rides_key, options)

        self._error = None
        self._options = list(options)
        self._keep_selection()
        logger.info(f"Loaded {len(self._options)} ride options")
        return self.ride_options

    # -- booking -------------------------------------------------------------

    async def book_selected_ride(self) -> BookingResult | None:
        """Book the selected offer; None when validation or the request failed."""
        ride = self._selected
        if ride is None:
            self._toaster.toast(
                "No Ride Selected", "Please select a ride before booking.", variant="destructive"
            )
            return None
        if self._origin is None or self._destination is None:
            self._toaster.toast(
                "Booking Failed", "Missing required booking information", variant="destructive"
            )
            return None

        self.is_booking = True
        try:
            with log_ride_context(ride.id, service_id=ride.service_id):
                result = await self._client.book_ride(
                    ride.id, ride.service_id, self._origin, self._destination
                )
                logger.info(f"Booked {ride.service_name} ride")
        except RideSyncError as e:
            self._error = e
            self._toaster.toast(
                "Booking Failed",
                e.message or "Could not book your ride. Please try again.",
                variant="destructive",
            )
            return None
        finally:
            self.is_booking = False

        if result.redirect_url:
            self._open_url(result.redirect_url)

        self._toaster.toast("Ride Booked!", f"Your {ride.service_name} ride has been booked.")
        if self._notifications is not None:
            self._notifications.notify_booking_confirmed(
                {
                    "rideId": ride.id,
                    "serviceId": ride.service_id,
                    "serviceName": ride.service_name,
                    "price": ride.price,
                    "currency": ride.currency,
                }
            )
        return result

    # -- internals -----------------------------------------------------------

    def _inputs_changed(self) -> None:
        self._generation += 1
        self._selected = None
        self._route = None
        self._options = []
        self._error = None
        self.is_loading_route = False
        self.is_loading_rides = False

    def _keep_selection(self) -> None:
        if self._selected is None:
            return
        previous = self._selected
        self._selected = next(
            (
                option
                for option in self._options
                if option.id == previous.id and option.service_id == previous.service_id
            ),
            None,
        )

    def _query_failed(self, generation: int, error: RideSyncError) -> None:
        if generation != self._generation:
            logger.info(f"Ignoring failure of superseded query: {error}")
            return
        self._error = error
        logger.warning(f"Ride query failed: {error}")
        self._toaster.toast(
            "Could not load rides",
            error.message or "Please try again.",
            variant="destructive",
        )
