"""Tests for the command line entry point."""

import json
import logging

import pytest
import respx
from click.testing import CliRunner
from conftest import FakeConnector, FakeSocket
from httpx import Response

import main
from geo.aggregator import LocationSnapshot
from geo.models import Location
from main import ArrivalWatcher, cli, parse_coordinates
from notifications.models import NotificationType, PermissionState
from realtime.connection import ConnectionManager
from settings import Settings

BASE_URL = "http://rides.test"


@pytest.fixture
def runner(monkeypatch):
    monkeypatch.setenv("RIDES_API_BASE_URL", BASE_URL)
    monkeypatch.setenv("RIDES_API_MAX_RETRIES", "1")
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield CliRunner()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def backend():
    with respx.mock:
        respx.get(f"{BASE_URL}/api/directions").mock(
            return_value=Response(
                200,
                json={
                    "origin": {"lat": 51.5074, "lng": -0.1278},
                    "destination": {"lat": 51.5174, "lng": -0.1378},
                    "distance": 1.8,
                    "duration": 7,
                },
            )
        )
        respx.get(f"{BASE_URL}/api/rides").mock(
            return_value=Response(
                200,
                json=[
                    {
                        "id": "r1",
                        "serviceId": "bolt",
                        "serviceName": "Bolt",
                        "price": 11.0,
                        "estimatedPickupTime": 3,
                        "estimatedTripTime": 7,
                        "estimatedDistance": 1.8,
                    },
                    {
                        "id": "r2",
                        "serviceId": "uber",
                        "serviceName": "UberX",
                        "price": 9.5,
                        "estimatedPickupTime": 6,
                        "estimatedTripTime": 7,
                        "estimatedDistance": 1.8,
                    },
                ],
            )
        )
        book = respx.post(f"{BASE_URL}/api/rides/book").mock(
            return_value=Response(200, json={"success": True, "message": "Ride requested"})
        )
        yield book


@pytest.mark.unit
class TestParseCoordinates:
    def test_pair(self):
        assert parse_coordinates("51.5, -0.12").coords == (51.5, -0.12)

    @pytest.mark.parametrize("value", ["Trafalgar Square", "1,2,3", "a,b", "95,0"])
    def test_not_a_pair(self, value):
        assert parse_coordinates(value) is None


@pytest.mark.unit
class TestArrivalWatcher:
    def test_notifies_once_per_approach(self, notification_store, pickup):
        watcher = ArrivalWatcher(notification_store)
        near = Location(lat=pickup.lat + 0.001, lng=pickup.lng)

        watcher(LocationSnapshot(origin=pickup, driver=near))
        watcher(LocationSnapshot(origin=pickup, driver=pickup))
        watcher(LocationSnapshot(origin=pickup))
        watcher(LocationSnapshot(origin=pickup, driver=near))

        arrivals = [
            n
            for n in notification_store.notifications
            if n.type == NotificationType.DRIVER_ARRIVAL
        ]
        assert len(arrivals) == 2

    def test_far_driver_not_notified(self, notification_store, pickup):
        watcher = ArrivalWatcher(notification_store)
        watcher(LocationSnapshot(origin=pickup, driver=Location(lat=51.6, lng=-0.1278)))
        assert notification_store.notifications == ()


@pytest.mark.unit
class TestBuildNotificationStore:
    async def test_native_disabled_without_push_key(self, monkeypatch):
        monkeypatch.delenv("NOTIFY_PUSH_PUBLIC_KEY", raising=False)
        store = main.build_notification_store(Settings())

        assert await store.request_permission() is False

    async def test_native_enabled_with_push_key(self, monkeypatch):
        monkeypatch.setenv("NOTIFY_PUSH_PUBLIC_KEY", "BPublicKey")
        store = main.build_notification_store(Settings())

        assert await store.request_permission() is True
        assert store.permission == PermissionState.GRANTED


@pytest.mark.unit
class TestCompareCommand:
    def test_prints_options_cheapest_first(self, runner, backend):
        result = runner.invoke(
            cli, ["compare", "--origin", "51.5074,-0.1278", "--destination", "51.5174,-0.1378"]
        )

        assert result.exit_code == 0, result.output
        assert "1.8 km" in result.output
        assert result.output.index("UberX") < result.output.index("Bolt")
        assert not backend.called

    def test_book_fastest(self, runner, backend):
        result = runner.invoke(
            cli,
            [
                "compare",
                "--origin",
                "51.5074,-0.1278",
                "--destination",
                "51.5174,-0.1378",
                "--sort",
                "pickup",
                "--book",
            ],
        )

        assert result.exit_code == 0, result.output
        assert "Ride requested" in result.output
        assert b'"rideId":"r1"' in backend.calls.last.request.content.replace(b" ", b"")

    def test_backend_error_exits_nonzero(self, runner):
        with respx.mock:
            respx.get(f"{BASE_URL}/api/directions").mock(
                return_value=Response(400, json={"error": "Invalid coordinates"})
            )
            result = runner.invoke(
                cli, ["compare", "--origin", "0,0", "--destination", "0,1"]
            )

        assert result.exit_code == 1
        assert "Invalid coordinates" in result.output


@pytest.mark.unit
class TestTrackRideRequest:
    TRIP = [
        "track",
        "--user-id",
        "7",
        "--name",
        "Ada",
        "--pickup",
        "51.5074,-0.1278",
        "--destination",
        "51.5174,-0.1378",
        "--request-ride",
        "--duration",
        "0.05",
    ]

    @pytest.fixture
    def socket(self, monkeypatch) -> FakeSocket:
        socket = FakeSocket()

        def build_connection(settings, session):
            return ConnectionManager(
                "ws://rides.test/ws",
                user_type=session.user_type,
                user_id=session.user_id,
                connect_factory=FakeConnector(socket),
            )

        monkeypatch.setattr(main, "build_connection", build_connection)
        monkeypatch.setenv("MAP_PROVIDER", "fallback")
        return socket

    @staticmethod
    def mock_reverse_geocode() -> None:
        respx.get(f"{BASE_URL}/api/location/reverse-geocode").mock(
            return_value=Response(200, json={"location": {"address": "Trafalgar Square"}})
        )

    @staticmethod
    def booking_requests(socket: FakeSocket) -> list[dict]:
        frames = [json.loads(raw) for raw in socket.sent]
        return [frame["data"] for frame in frames if frame["type"] == "booking_request"]

    def test_sends_cheapest_quoted_fare(self, runner, backend, socket):
        self.mock_reverse_geocode()
        result = runner.invoke(cli, self.TRIP)

        assert result.exit_code == 0, result.output
        [request] = self.booking_requests(socket)
        assert request["estimatedFare"] == 9.5
        assert request["passengerId"] == 7
        assert request["passengerName"] == "Ada"

    def test_explicit_fare_is_sent_as_given(self, runner, backend, socket):
        self.mock_reverse_geocode()
        result = runner.invoke(cli, [*self.TRIP, "--fare", "14.25"])

        assert result.exit_code == 0, result.output
        [request] = self.booking_requests(socket)
        assert request["estimatedFare"] == 14.25

    def test_no_quote_means_no_request(self, runner, socket):
        with respx.mock:
            self.mock_reverse_geocode()
            respx.get(f"{BASE_URL}/api/directions").mock(
                return_value=Response(
                    200,
                    json={
                        "origin": {"lat": 51.5074, "lng": -0.1278},
                        "destination": {"lat": 51.5174, "lng": -0.1378},
                        "distance": 1.8,
                        "duration": 7,
                    },
                )
            )
            respx.get(f"{BASE_URL}/api/rides").mock(return_value=Response(200, json=[]))

            result = runner.invoke(cli, self.TRIP)

        assert result.exit_code == 0, result.output
        assert "No fare quote available" in result.output
        assert self.booking_requests(socket) == []
