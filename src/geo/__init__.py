"""Locations, distances and the location aggregator."""

from .distance import estimate_eta_minutes, haversine_distance_km, haversine_distance_m
from .models import DEFAULT_LOCATION, Location, RouteInfo

__all__ = [
    "DEFAULT_LOCATION",
    "Location",
    "RouteInfo",
    "estimate_eta_minutes",
    "haversine_distance_km",
    "haversine_distance_m",
]
