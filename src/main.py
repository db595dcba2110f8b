"""Command line entry point.

``track`` runs a live ride session: opens the realtime channel, mirrors
pushes into notifications, follows the driver and redraws the map on every
position. ``compare`` fetches ride options for one trip and prints them.
"""

import asyncio
import contextlib
import logging
import signal

import click
from rich.console import Console
from rich.table import Table

from app_logging import setup_logging
from core.exceptions import ConfigurationError, RideSyncError
from core.retry import BackoffPolicy, RetryConfig
from core.session import Session
from geo.aggregator import LocationAggregator, LocationSnapshot
from geo.device import StaticLocationProvider, resolve_user_location
from geo.distance import round_half_up
from geo.geocoding import LocationClient
from geo.models import Location
from maps import MapSubscriber, create_renderer
from notifications.bridge import bind_realtime
from notifications.store import NotificationStore
from notifications.surfaces import LoggingNotifier, NativeNotifier, UnsupportedNotifier
from realtime.connection import ConnectionManager
from realtime.messages import RideRequest
from rides.aggregator import RideOptionsAggregator
from rides.client import RidesApiClient
from settings import Settings, get_settings
from telemetry import create_driver_telemetry

logger = logging.getLogger(__name__)

console = Console()

# Driver ETA at which the "arriving soon" notification fires
ARRIVAL_NOTICE_MINUTES = 2


def parse_coordinates(value: str) -> Location | None:
    """``"lat,lng"`` to a Location; None when ``value`` is not a coordinate pair."""
    parts = value.split(",")
    if len(parts) != 2:
        return None
    try:
        return Location(lat=float(parts[0]), lng=float(parts[1]))
    except ValueError:
        return None


async def resolve_place(value: str, geocoder: LocationClient) -> Location:
    location = parse_coordinates(value)
    if location is not None:
        return location
    location = await geocoder.geocode(value)
    if location is None:
        raise click.BadParameter(f"Could not find a location for {value!r}")
    return location


def build_connection(settings: Settings, session: Session) -> ConnectionManager:
    ws = settings.connection
    backoff = BackoffPolicy(
        base_delay=ws.reconnect_base_delay,
        multiplier=ws.reconnect_multiplier,
        max_delay=ws.reconnect_max_delay,
        jitter=ws.reconnect_jitter,
        max_attempts=ws.reconnect_max_attempts,
    )
    return ConnectionManager(
        ws.url,
        user_type=session.user_type,
        user_id=session.user_id,
        backoff=backoff,
        open_timeout=ws.open_timeout,
    )


def build_notification_store(settings: Settings) -> NotificationStore:
    native: NativeNotifier
    if settings.notifications.push_public_key:
        native = LoggingNotifier()
    else:
        logger.warning("Push public key not configured, native notifications disabled")
        native = UnsupportedNotifier()
    return NotificationStore(
        native=native, max_notifications=settings.notifications.max_notifications
    )


def build_rides_client(settings: Settings) -> RidesApiClient:
    api = settings.rides_api
    return RidesApiClient(
        api.base_url,
        timeout=api.timeout,
        retry_config=RetryConfig(
            max_attempts=api.max_retries,
            base_delay=api.retry_base_delay,
            multiplier=api.retry_multiplier,
        ),
    )


class ArrivalWatcher:
    """Publishes one "driver arriving" notification per approach."""

    def __init__(self, store: NotificationStore, notice_minutes: int = ARRIVAL_NOTICE_MINUTES):
        self._store = store
        self._notice_minutes = notice_minutes
        self._notified = False

    def __call__(self, snapshot: LocationSnapshot) -> None:
        eta = snapshot.driver_eta_minutes
        if eta is None:
            self._notified = False
            return
        if eta <= self._notice_minutes and not self._notified:
            self._notified = True
            self._store.notify_driver_arrival(eta)


async def quote_fare(settings: Settings, origin: Location, destination: Location) -> float | None:
    """Price of the cheapest ride option for the trip; None when nothing is offered."""
    rides = RideOptionsAggregator(
        build_rides_client(settings),
        route_stale_seconds=settings.rides_api.route_stale_seconds,
        rides_stale_seconds=settings.rides_api.rides_stale_seconds,
    )
    rides.set_origin(origin)
    rides.set_destination(destination)

    options = await rides.refresh()
    if rides.error is not None:
        logger.warning(f"Could not quote a fare: {rides.error.message}")
    return options[0].price if options else None


async def request_ride_when_connected(
    settings: Settings,
    manager: ConnectionManager,
    session: Session,
    origin: Location,
    destination: Location,
    distance_km: float,
    fare: float | None,
) -> bool:
    """Send a booking request once the channel is up.

    Without an explicit ``fare`` the cheapest ride option is quoted; no
    request is sent when nothing can be quoted.
    """
    if not session.is_authenticated or session.user_id is None:
        console.print("[yellow]Sign in with --user-id to request a ride[/yellow]")
        return False

    if fare is None:
        fare = await quote_fare(settings, origin, destination)
    if fare is None:
        console.print("[yellow]No fare quote available, ride request was not sent[/yellow]")
        return False

    if not await manager.wait_until_connected(timeout=settings.connection.open_timeout):
        console.print("[red]Not connected, ride request was not sent[/red]")
        return False

    return await manager.send_ride_request(
        RideRequest(
            passenger_id=session.user_id,
            passenger_name=session.state.display_name or "Passenger",
            pickup_address=origin.display_label(),
            destination_address=destination.display_label(),
            estimated_fare=fare,
            distance=distance_km,
        )
    )


async def run_track(
    settings: Settings,
    session: Session,
    pickup: Location | None,
    destination: Location | None,
    driver_id: int | None,
    request_ride: bool,
    duration: float,
    fare: float | None = None,
) -> None:
    geocoder = LocationClient(settings.rides_api.base_url, timeout=settings.rides_api.timeout)
    provider = StaticLocationProvider(pickup) if pickup is not None else None
    user_location = await resolve_user_location(provider, geocoder)
    if user_location.error:
        console.print(f"[yellow]{user_location.error}[/yellow]")
    origin = user_location.location

    notifications = build_notification_store(settings)
    await notifications.request_permission()
    manager = build_connection(settings, session)
    unbind = bind_realtime(notifications, manager)

    aggregator = LocationAggregator(origin=origin, destination=destination)
    aggregator.subscribe(ArrivalWatcher(notifications))
    renderer = create_renderer(settings.map, console=console)
    map_subscriber = MapSubscriber(renderer, aggregator)

    telemetry = create_driver_telemetry(settings, manager, origin, driver_id=driver_id)
    aggregator.attach(telemetry)

    stop = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop.set)

    manager.connect()
    map_subscriber.start()
    await telemetry.start()
    try:
        if request_ride and destination is not None:
            estimate = aggregator.snapshot.estimate
            await request_ride_when_connected(
                settings,
                manager,
                session,
                origin,
                destination,
                distance_km=estimate.distance_km if estimate else 0.0,
                fare=fare,
            )

        if duration > 0:
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(stop.wait(), timeout=duration)
        else:
            await stop.wait()
    finally:
        logger.info("Stopping live session...")
        await telemetry.stop()
        aggregator.detach()
        await map_subscriber.stop()
        unbind()
        await manager.disconnect()

    render = map_subscriber.last_render
    if render is not None and render.output:
        console.print(f"[green]Map written to {render.output}[/green]")
    console.print(f"{len(notifications.notifications)} notifications received")


async def run_compare(
    settings: Settings,
    origin_value: str,
    destination_value: str,
    sort_mode: str,
    book: bool,
) -> None:
    geocoder = LocationClient(settings.rides_api.base_url, timeout=settings.rides_api.timeout)
    origin = await resolve_place(origin_value, geocoder)
    destination = await resolve_place(destination_value, geocoder)

    notifications = build_notification_store(settings)
    rides = RideOptionsAggregator(
        build_rides_client(settings),
        notifications=notifications,
        route_stale_seconds=settings.rides_api.route_stale_seconds,
        rides_stale_seconds=settings.rides_api.rides_stale_seconds,
    )
    rides.sort_mode = sort_mode
    rides.set_origin(origin)
    rides.set_destination(destination)

    options = await rides.refresh()
    if rides.error is not None:
        raise click.ClickException(rides.error.message)

    route = rides.route
    title = "Ride options"
    if route is not None:
        title = f"Ride options ({route.distance:.1f} km, {round_half_up(route.duration)} min)"
    table = Table(title=title)
    table.add_column("Service", style="cyan")
    table.add_column("Type")
    table.add_column("Price", justify="right")
    table.add_column("Pickup (min)", justify="right")
    table.add_column("Trip (min)", justify="right")
    table.add_column("Tag")
    for option in options:
        table.add_row(
            option.service_name,
            option.service_type or "",
            f"{option.price:.2f} {option.currency}",
            f"{option.estimated_pickup_time:.0f}",
            f"{option.estimated_trip_time:.0f}",
            option.tag.text if option.tag else "",
        )
    console.print(table)

    if book:
        if not options:
            console.print("[yellow]No rides to book[/yellow]")
            return
        rides.select_ride(options[0])
        result = await rides.book_selected_ride()
        if result is not None:
            console.print(f"[green]{result.message or 'Ride booked'}[/green]")


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default=None,
    help="Override LOG_LEVEL.",
)
@click.pass_context
def cli(ctx: click.Context, log_level: str | None) -> None:
    """Live ride tracking and ride comparison client."""
    settings = get_settings()
    setup_logging(
        level=(log_level or settings.log.level).upper(),
        json_output=settings.log.format == "json",
        environment=settings.environment,
    )
    ctx.obj = settings


@cli.command()
@click.option("--user-id", type=click.IntRange(min=1), default=None, help="Signed-in user id.")
@click.option("--name", "display_name", default=None, help="Display name sent with ride requests.")
@click.option("--pickup", default=None, help="Pickup as 'lat,lng'. Defaults to the device fallback.")
@click.option("--destination", default=None, help="Destination as 'lat,lng'.")
@click.option("--driver-id", type=int, default=None, help="Only follow this driver's positions.")
@click.option("--request-ride", is_flag=True, help="Send a booking request once connected.")
@click.option(
    "--fare",
    type=click.FloatRange(min=0),
    default=None,
    help="Estimated fare sent with --request-ride. Defaults to the cheapest quoted option.",
)
@click.option(
    "--duration",
    type=click.FloatRange(min=0),
    default=0,
    help="Stop after this many seconds (0 runs until interrupted).",
)
@click.pass_obj
def track(
    settings: Settings,
    user_id: int | None,
    display_name: str | None,
    pickup: str | None,
    destination: str | None,
    driver_id: int | None,
    request_ride: bool,
    fare: float | None,
    duration: float,
) -> None:
    """Follow a live ride over the realtime channel."""
    session = Session()
    user_id = user_id or settings.connection.user_id
    if user_id is not None:
        session.login(user_id, settings.connection.user_type, display_name)

    pickup_location = parse_coordinates(pickup) if pickup else None
    if pickup and pickup_location is None:
        raise click.BadParameter("expected 'lat,lng'", param_hint="--pickup")
    destination_location = parse_coordinates(destination) if destination else None
    if destination and destination_location is None:
        raise click.BadParameter("expected 'lat,lng'", param_hint="--destination")

    try:
        asyncio.run(
            run_track(
                settings,
                session,
                pickup_location,
                destination_location,
                driver_id,
                request_ride,
                duration,
                fare=fare,
            )
        )
    except ConfigurationError as e:
        raise click.ClickException(e.message) from e


@cli.command()
@click.option("--origin", required=True, help="Origin as 'lat,lng' or an address.")
@click.option("--destination", required=True, help="Destination as 'lat,lng' or an address.")
@click.option(
    "--sort",
    "sort_mode",
    type=click.Choice(["price", "pickup"]),
    default="price",
    help="Order options by price or pickup time.",
)
@click.option("--book", is_flag=True, help="Book the first option in the chosen order.")
@click.pass_obj
def compare(
    settings: Settings, origin: str, destination: str, sort_mode: str, book: bool
) -> None:
    """Compare ride options for one trip."""
    try:
        asyncio.run(run_compare(settings, origin, destination, sort_mode, book))
    except RideSyncError as e:
        raise click.ClickException(e.message) from e


if __name__ == "__main__":
    cli()
