"""Lookups against the backend's geocoding endpoints."""

import logging

import httpx

from geo.models import Location

logger = logging.getLogger(__name__)

UNKNOWN_ADDRESS = "Unknown location"


class LocationClient:
    def __init__(self, base_url: str, timeout: float = 5.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    async def geocode(self, address: str) -> Location | None:
        """Resolve an address to a location; None when it cannot be found."""
        url = f"{self.base_url}/api/location/geocode"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params={"address": address})
                response.raise_for_status()
                data = response.json()["location"]
                return Location(lat=data["lat"], lng=data["lng"], address=address)
        except (httpx.HTTPError, KeyError, TypeError, ValueError) as e:
            logger.warning(f"Geocoding failed for address: {e}")
            return None

    async def reverse_geocode(self, lat: float, lng: float) -> str:
        """Resolve coordinates to an address, falling back to a placeholder."""
        url = f"{self.base_url}/api/location/reverse-geocode"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params={"lat": lat, "lng": lng})
                response.raise_for_status()
                return response.json()["location"].get("address") or UNKNOWN_ADDRESS
        except (httpx.HTTPError, KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Reverse geocoding failed: {e}")
            return UNKNOWN_ADDRESS
