"""Centralized geographic distance calculations.

Straight-line (Haversine) distances and the rough travel-time estimate
shown before a directions result is available.
"""

from math import atan2, cos, floor, radians, sin, sqrt

EARTH_RADIUS_KM = 6371.0
EARTH_RADIUS_M = EARTH_RADIUS_KM * 1000

# Assumed average urban driving speed for API-free ETA estimates
URBAN_SPEED_KMH = 25.0

# ~9e-6 degrees per meter (1 / 111,320 m per degree of latitude)
_LAT_DEGREES_PER_METER: float = 1.0 / 111_320


def haversine_distance_km(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
) -> float:
    """Calculate the great-circle distance between two points in kilometers.

    Args:
        lat1: Latitude of first point in degrees
        lng1: Longitude of first point in degrees
        lat2: Latitude of second point in degrees
        lng2: Longitude of second point in degrees

    Returns:
        Distance between the two points in kilometers
    """
    lat1, lng1, lat2, lng2 = map(radians, [lat1, lng1, lat2, lng2])
    dlat = lat2 - lat1
    dlng = lng2 - lng1

    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlng / 2) ** 2
    c = 2 * atan2(sqrt(a), sqrt(1 - a))

    return EARTH_RADIUS_KM * c


def haversine_distance_m(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
) -> float:
    """Great-circle distance in meters (see haversine_distance_km)."""
    return haversine_distance_km(lat1, lng1, lat2, lng2) * 1000.0


def round_half_up(value: float) -> int:
    """Round to the nearest whole number with halves rounded up.

    The builtin ``round`` rounds halves to even, so 12.5 would show as 12.
    """
    return floor(value + 0.5)


def estimate_eta_minutes(distance_km: float, speed_kmh: float = URBAN_SPEED_KMH) -> int:
    """Travel time in whole minutes at a fixed average speed.

    A fast approximation for display only; any directions-service duration
    takes precedence over it.
    """
    if distance_km <= 0:
        return 0
    return round_half_up(distance_km / speed_kmh * 60)


def is_within_proximity(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
    threshold_m: float = 50.0,
) -> bool:
    """Check if two geographic points are within a given distance threshold.

    Used to decide whether a driver has reached the pickup point.
    """
    # Bounding-box pre-check, expanded by 1% so that the boundary never
    # yields a false negative.
    lat_threshold = threshold_m * _LAT_DEGREES_PER_METER * 1.01
    if abs(lat2 - lat1) > lat_threshold:
        return False
    if abs(lng2 - lng1) > lat_threshold / max(cos(radians(lat1)), 0.01):
        return False

    return haversine_distance_m(lat1, lng1, lat2, lng2) <= threshold_m
