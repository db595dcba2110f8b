"""Tests for RidesApiClient against a mocked backend."""

import json

import pytest
import respx
from httpx import ConnectError, ReadTimeout, Response

from core.retry import RetryConfig
from geo.models import RouteInfo
from rides.client import RidesApiClient, RidesRequestError, RidesServiceError, RidesTimeoutError

BASE_URL = "http://rides.test"


@pytest.fixture
def client() -> RidesApiClient:
    return RidesApiClient(
        BASE_URL, timeout=2.0, retry_config=RetryConfig(max_attempts=2, base_delay=0.01)
    )


@pytest.fixture
def route_payload(pickup, dropoff) -> dict:
    return {
        "origin": pickup.model_dump(),
        "destination": dropoff.model_dump(),
        "distance": 1.8,
        "duration": 7.5,
    }


def ride_payload(ride_id: str, price: float, pickup_minutes: float) -> dict:
    return {
        "id": ride_id,
        "serviceId": "uber",
        "serviceName": "UberX",
        "serviceType": "standard",
        "price": price,
        "currency": "GBP",
        "estimatedPickupTime": pickup_minutes,
        "estimatedTripTime": 8,
        "estimatedDistance": 1.8,
        "tag": {"text": "Cheapest", "type": "success"},
    }


@pytest.mark.unit
class TestGetRoute:
    async def test_sends_coordinates(self, client, pickup, dropoff, route_payload):
        async with respx.mock:
            route = respx.get(f"{BASE_URL}/api/directions").mock(
                return_value=Response(200, json=route_payload)
            )
            result = await client.get_route(pickup, dropoff)

        params = route.calls.last.request.url.params
        assert float(params["originLat"]) == pickup.lat
        assert float(params["destLng"]) == dropoff.lng
        assert isinstance(result, RouteInfo)
        assert result.distance == 1.8
        assert result.duration == 7.5

    async def test_retries_server_errors(self, client, pickup, dropoff, route_payload):
        async with respx.mock:
            route = respx.get(f"{BASE_URL}/api/directions").mock(
                side_effect=[Response(503), Response(200, json=route_payload)]
            )
            result = await client.get_route(pickup, dropoff)

        assert route.call_count == 2
        assert result.distance == 1.8

    async def test_server_error_after_retries(self, client, pickup, dropoff):
        async with respx.mock:
            respx.get(f"{BASE_URL}/api/directions").mock(return_value=Response(500))
            with pytest.raises(RidesServiceError):
                await client.get_route(pickup, dropoff)

    async def test_bad_request_uses_error_field(self, client, pickup, dropoff):
        async with respx.mock:
            route = respx.get(f"{BASE_URL}/api/directions").mock(
                return_value=Response(400, json={"error": "Invalid coordinates"})
            )
            with pytest.raises(RidesRequestError) as exc_info:
                await client.get_route(pickup, dropoff)

        assert route.call_count == 1
        assert exc_info.value.message == "Invalid coordinates"
        assert exc_info.value.details["status_code"] == 400

    async def test_timeout(self, client, pickup, dropoff):
        async with respx.mock:
            respx.get(f"{BASE_URL}/api/directions").mock(side_effect=ReadTimeout("slow"))
            with pytest.raises(RidesTimeoutError):
                await client.get_route(pickup, dropoff)

    async def test_unreachable(self, client, pickup, dropoff):
        async with respx.mock:
            respx.get(f"{BASE_URL}/api/directions").mock(side_effect=ConnectError("refused"))
            with pytest.raises(RidesServiceError):
                await client.get_route(pickup, dropoff)

    async def test_malformed_route(self, client, pickup, dropoff):
        async with respx.mock:
            respx.get(f"{BASE_URL}/api/directions").mock(
                return_value=Response(200, json={"distance": 1})
            )
            with pytest.raises(RidesRequestError):
                await client.get_route(pickup, dropoff)


@pytest.mark.unit
class TestGetRideOptions:
    async def test_parses_options(self, client, pickup, dropoff, route_payload):
        route = RouteInfo.model_validate(route_payload)
        async with respx.mock:
            mocked = respx.get(f"{BASE_URL}/api/rides").mock(
                return_value=Response(200, json=[ride_payload("r1", 9.5, 4)])
            )
            options = await client.get_ride_options(pickup, dropoff, route)

        params = mocked.calls.last.request.url.params
        assert float(params["distance"]) == 1.8
        assert float(params["duration"]) == 7.5
        (option,) = options
        assert option.service_name == "UberX"
        assert option.tag.text == "Cheapest"

    async def test_non_list_response(self, client, pickup, dropoff, route_payload):
        route = RouteInfo.model_validate(route_payload)
        async with respx.mock:
            respx.get(f"{BASE_URL}/api/rides").mock(
                return_value=Response(200, json={"rides": []})
            )
            with pytest.raises(RidesRequestError):
                await client.get_ride_options(pickup, dropoff, route)


@pytest.mark.unit
class TestBookRide:
    async def test_posts_booking(self, client, pickup, dropoff):
        async with respx.mock:
            mocked = respx.post(f"{BASE_URL}/api/rides/book").mock(
                return_value=Response(
                    200,
                    json={
                        "success": True,
                        "message": "Booked",
                        "redirectUrl": "https://uber.test/book",
                    },
                )
            )
            result = await client.book_ride("r1", "uber", pickup, dropoff)

        body = json.loads(mocked.calls.last.request.content)
        assert body["rideId"] == "r1"
        assert body["serviceId"] == "uber"
        assert body["origin"] == {"lat": pickup.lat, "lng": pickup.lng, "address": pickup.address}
        assert result.redirect_url == "https://uber.test/book"

    async def test_booking_not_retried(self, client, pickup, dropoff):
        async with respx.mock:
            mocked = respx.post(f"{BASE_URL}/api/rides/book").mock(return_value=Response(502))
            with pytest.raises(RidesServiceError):
                await client.book_ride("r1", "uber", pickup, dropoff)

        assert mocked.call_count == 1
