"""Device position lookup with a default-location fallback."""

import logging
from dataclasses import dataclass
from typing import Protocol

from geo.geocoding import LocationClient
from geo.models import DEFAULT_LOCATION, Location

logger = logging.getLogger(__name__)


class DeviceLocationProvider(Protocol):
    async def current_position(self) -> Location | None:
        """Current device fix, or None when unavailable or denied."""
        ...


class StaticLocationProvider:
    """Provider returning a fixed position (CLI flags, tests)."""

    def __init__(self, location: Location | None):
        self._location = location

    async def current_position(self) -> Location | None:
        return self._location


@dataclass(frozen=True)
class UserLocationResult:
    location: Location
    error: str | None = None

    @property
    def is_default(self) -> bool:
        return self.error is not None


async def resolve_user_location(
    provider: DeviceLocationProvider | None,
    geocoder: LocationClient | None = None,
) -> UserLocationResult:
    """Current user location, reverse-geocoded when possible.

    Falls back to the default location with an error message when the
    device cannot supply a fix.
    """
    if provider is None:
        return UserLocationResult(
            location=DEFAULT_LOCATION,
            error="Geolocation is not supported on this device",
        )

    try:
        position = await provider.current_position()
    except Exception as e:
        logger.error(f"Error getting location: {e}")
        position = None

    if position is None:
        return UserLocationResult(
            location=DEFAULT_LOCATION,
            error="Unable to retrieve your location. Using default location.",
        )

    if geocoder is not None and position.address is None:
        address = await geocoder.reverse_geocode(position.lat, position.lng)
        position = position.model_copy(update={"address": address})

    return UserLocationResult(location=position)
