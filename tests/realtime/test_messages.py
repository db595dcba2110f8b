import json
from datetime import UTC, datetime

import pytest

from realtime.messages import (
    BOOKING_REQUEST,
    REGISTER,
    RideRequest,
    booking_request_message,
    parse_message,
    register_message,
)


@pytest.mark.unit
class TestParseMessage:
    def test_enveloped_message(self):
        message = parse_message('{"type": "booking_confirmed", "data": {"rideId": "r1"}}')
        assert message.type == "booking_confirmed"
        assert message.data == {"rideId": "r1"}

    def test_flat_message_is_normalised(self):
        raw = json.dumps(
            {"type": "driver_location_update", "driverId": 9, "lat": 51.5, "lng": -0.1}
        )
        message = parse_message(raw)
        assert message.type == "driver_location_update"
        assert message.data == {"driverId": 9, "lat": 51.5, "lng": -0.1}

    def test_accepts_bytes(self):
        assert parse_message(b'{"type": "connection_confirmed"}').data == {}

    @pytest.mark.parametrize(
        "raw",
        ["not json", "[1, 2]", '{"data": {}}', '{"type": 5}'],
    )
    def test_rejects_malformed(self, raw):
        with pytest.raises(ValueError):
            parse_message(raw)


@pytest.mark.unit
class TestOutbound:
    def test_register(self):
        assert register_message("driver", 12) == {
            "type": REGISTER,
            "data": {"userType": "driver", "userId": 12},
        }

    def test_booking_request_shape(self):
        request = RideRequest(
            passengerId=3,
            passengerName="Grace",
            pickupAddress="Trafalgar Square",
            destinationAddress="Marylebone",
            estimatedFare=12.5,
            distance=1.3,
        )
        now = datetime(2026, 1, 2, 3, 4, 5, tzinfo=UTC)

        message = booking_request_message(request, now=now)

        assert message["type"] == BOOKING_REQUEST
        assert message["data"] == {
            "passengerId": 3,
            "passengerName": "Grace",
            "passengerPhone": "+44",
            "pickupAddress": "Trafalgar Square",
            "destinationAddress": "Marylebone",
            "estimatedFare": 12.5,
            "distance": 1.3,
            "serviceType": "standard",
            "timestamp": "2026-01-02T03:04:05+00:00",
        }

    def test_ride_request_accepts_field_names(self):
        request = RideRequest(
            passenger_id=1,
            passenger_name="A",
            pickup_address="P",
            destination_address="D",
            estimated_fare=0,
            distance=0,
        )
        assert request.passenger_id == 1
