"""Ride options: backend client, caching, sorting and booking."""

from .aggregator import RideOptionsAggregator, sort_ride_options
from .client import RidesApiClient, RidesRequestError, RidesServiceError, RidesTimeoutError
from .models import BookingResult, RideOption, RideTag, SortMode

__all__ = [
    "BookingResult",
    "RideOption",
    "RideOptionsAggregator",
    "RideTag",
    "RidesApiClient",
    "RidesRequestError",
    "RidesServiceError",
    "RidesTimeoutError",
    "SortMode",
    "sort_ride_options",
]
