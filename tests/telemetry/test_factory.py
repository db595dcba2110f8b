import json

import pytest
from conftest import FakeConnector, settle

from core.exceptions import ConfigurationError
from realtime.connection import ConnectionManager
from settings import Settings, TelemetrySettings
from telemetry import (
    SimulatedDriverTelemetry,
    WebSocketDriverTelemetry,
    create_driver_telemetry,
)


@pytest.mark.unit
class TestCreateDriverTelemetry:
    def test_websocket_by_default(self, pickup):
        telemetry = create_driver_telemetry(Settings(), ConnectionManager(""), pickup)
        assert isinstance(telemetry, WebSocketDriverTelemetry)

    def test_simulated_outside_production(self, pickup):
        settings = Settings(
            environment="staging", telemetry=TelemetrySettings(provider="simulated")
        )
        telemetry = create_driver_telemetry(settings, ConnectionManager(""), pickup)
        assert isinstance(telemetry, SimulatedDriverTelemetry)

    def test_simulated_refused_in_production(self, pickup):
        settings = Settings(
            environment="production", telemetry=TelemetrySettings(provider="simulated")
        )
        with pytest.raises(ConfigurationError):
            create_driver_telemetry(settings, ConnectionManager(""), pickup)


@pytest.mark.unit
class TestWebSocketTelemetry:
    @pytest.fixture
    async def manager(self, fake_socket):
        manager = ConnectionManager("ws://rides.test/ws", connect_factory=FakeConnector(fake_socket))
        manager.connect()
        await settle()
        yield manager
        await manager.disconnect()

    @staticmethod
    def location_frame(driver_id: int, lat: float, lng: float) -> str:
        return json.dumps(
            {"type": "driver_location_update", "driverId": driver_id, "lat": lat, "lng": lng}
        )

    async def test_publishes_followed_driver(self, manager, fake_socket):
        telemetry = WebSocketDriverTelemetry(manager, driver_id=4)
        await telemetry.start()

        fake_socket.feed(self.location_frame(9, 51.0, 0.0))
        fake_socket.feed(self.location_frame(4, 51.5, -0.12))
        await settle()

        assert telemetry.position.coords == (51.5, -0.12)
        await telemetry.stop()

    async def test_follow_switches_driver(self, manager, fake_socket):
        telemetry = WebSocketDriverTelemetry(manager, driver_id=4)
        await telemetry.start()
        telemetry.follow(9)

        fake_socket.feed(self.location_frame(9, 51.0, 0.0))
        await settle()

        assert telemetry.driver_id == 9
        assert telemetry.position.coords == (51.0, 0.0)

    async def test_malformed_position_dropped(self, manager, fake_socket):
        telemetry = WebSocketDriverTelemetry(manager)
        await telemetry.start()

        fake_socket.feed(json.dumps({"type": "driver_location_update", "driverId": 1}))
        fake_socket.feed(self.location_frame(1, 123.0, 0.0))
        await settle()

        assert telemetry.position is None

    async def test_stop_unsubscribes(self, manager, fake_socket):
        telemetry = WebSocketDriverTelemetry(manager)
        await telemetry.start()
        await telemetry.stop()

        fake_socket.feed(self.location_frame(1, 51.0, 0.0))
        await settle()

        assert telemetry.position is None
