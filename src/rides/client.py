from typing import Any

import httpx
from pydantic import ValidationError as PydanticValidationError

from core.exceptions import NetworkError, ServiceUnavailableError, ValidationError
from core.retry import RetryConfig, with_retry
from geo.models import Location, RouteInfo
from rides.models import BookingResult, RideOption


class RidesServiceError(ServiceUnavailableError):
    """Rides backend error (5xx or unreachable). Retryable."""

    pass


class RidesTimeoutError(NetworkError):
    """Rides backend request timeout. Retryable."""

    pass


class RidesRequestError(ValidationError):
    """Request rejected by the backend (4xx) or unreadable response. Not retryable."""

    pass


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if isinstance(body, dict) and body.get("error"):
        return str(body["error"])
    return f"HTTP {response.status_code}"


def _route_params(origin: Location, destination: Location) -> dict[str, float]:
    return {
        "originLat": origin.lat,
        "originLng": origin.lng,
        "destLat": destination.lat,
        "destLng": destination.lng,
    }


class RidesApiClient:
    """Client for the ride comparison backend (directions, options, booking)."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 10.0,
        retry_config: RetryConfig | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()

    async def get_route(self, origin: Location, destination: Location) -> RouteInfo:
        """Route summary (distance in km, duration in minutes)."""

        async def fetch() -> RouteInfo:
            data = await self._request(
                "GET", "/api/directions", params=_route_params(origin, destination)
            )
            try:
                return RouteInfo.model_validate(data)
            except PydanticValidationError as e:
                raise RidesRequestError(f"Malformed route response: {e}") from e

        return await with_retry(fetch, self.retry_config, operation_name="get_route")

    async def get_ride_options(
        self, origin: Location, destination: Location, route: RouteInfo
    ) -> list[RideOption]:
        params: dict[str, float] = {
            **_route_params(origin, destination),
            "distance": route.distance,
            "duration": route.duration,
        }

        async def fetch() -> list[RideOption]:
            data = await self._request("GET", "/api/rides", params=params)
            if not isinstance(data, list):
                raise RidesRequestError("Ride options response is not a list")
            try:
                return [RideOption.model_validate(item) for item in data]
            except PydanticValidationError as e:
                raise RidesRequestError(f"Malformed ride option: {e}") from e

        return await with_retry(fetch, self.retry_config, operation_name="get_ride_options")

    async def book_ride(
        self,
        ride_id: str,
        service_id: str,
        origin: Location,
        destination: Location,
    ) -> BookingResult:
        """Submit a booking. Not retried, to avoid duplicate bookings."""
        body = {
            "rideId": ride_id,
            "serviceId": service_id,
            "origin": origin.model_dump(exclude_none=True),
            "destination": destination.model_dump(exclude_none=True),
        }
        data = await self._request("POST", "/api/rides/book", json=body)
        try:
            return BookingResult.model_validate(data)
        except PydanticValidationError as e:
            raise RidesRequestError(f"Malformed booking response: {e}") from e

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, **kwargs)
        except httpx.TimeoutException as e:
            raise RidesTimeoutError(f"Request timed out after {self.timeout}s") from e
        except httpx.NetworkError as e:
            raise RidesServiceError(f"Network error: {e}") from e

        if response.status_code >= 500:
            raise RidesServiceError(
                f"Rides server error: {response.status_code}",
                details={"status_code": response.status_code},
            )
        if response.status_code >= 400:
            raise RidesRequestError(
                _error_message(response), details={"status_code": response.status_code}
            )

        try:
            return response.json()
        except ValueError as e:
            raise RidesRequestError("Response is not valid JSON") from e
