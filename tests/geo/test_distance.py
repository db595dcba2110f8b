"""Tests for the straight-line distance and ETA helpers."""

import pytest

from geo.distance import (
    estimate_eta_minutes,
    haversine_distance_km,
    haversine_distance_m,
    is_within_proximity,
    round_half_up,
)


@pytest.mark.unit
class TestHaversine:
    def test_same_point_returns_zero(self) -> None:
        assert haversine_distance_km(51.5074, -0.1278, 51.5074, -0.1278) == pytest.approx(0.0)

    def test_central_london_hop(self) -> None:
        distance = haversine_distance_km(51.5074, -0.1278, 51.5174, -0.1378)
        assert distance == pytest.approx(1.31, abs=0.01)

    def test_london_to_paris(self) -> None:
        """Known distance is roughly 344 km."""
        distance = haversine_distance_km(51.5074, -0.1278, 48.8566, 2.3522)
        assert 335 <= distance <= 350

    def test_symmetry(self) -> None:
        a = haversine_distance_km(51.5074, -0.1278, 51.5174, -0.1378)
        b = haversine_distance_km(51.5174, -0.1378, 51.5074, -0.1278)
        assert a == pytest.approx(b)

    def test_meters_matches_kilometers(self) -> None:
        km = haversine_distance_km(51.5074, -0.1278, 51.5174, -0.1378)
        m = haversine_distance_m(51.5074, -0.1278, 51.5174, -0.1378)
        assert m == pytest.approx(km * 1000)


@pytest.mark.unit
class TestEstimateEta:
    def test_central_london_hop(self) -> None:
        distance = haversine_distance_km(51.5074, -0.1278, 51.5174, -0.1378)
        assert estimate_eta_minutes(distance) == 3

    def test_zero_distance(self) -> None:
        assert estimate_eta_minutes(0.0) == 0

    def test_rounds_to_whole_minutes(self) -> None:
        # 25 km/h: 10 km takes 24 minutes
        assert estimate_eta_minutes(10.0) == 24
        assert estimate_eta_minutes(1.0) == 2

    def test_custom_speed(self) -> None:
        assert estimate_eta_minutes(30.0, speed_kmh=60.0) == 30


@pytest.mark.unit
class TestRoundHalfUp:
    @pytest.mark.parametrize(
        ("value", "expected"), [(12.5, 13), (0.5, 1), (2.5, 3), (12.4, 12), (0.0, 0)]
    )
    def test_halves_round_up(self, value: float, expected: int) -> None:
        assert round_half_up(value) == expected


@pytest.mark.unit
class TestIsWithinProximity:
    def test_same_point(self) -> None:
        assert is_within_proximity(51.5074, -0.1278, 51.5074, -0.1278)

    def test_inside_threshold(self) -> None:
        # ~33 m north
        assert is_within_proximity(51.5074, -0.1278, 51.5077, -0.1278, threshold_m=50)

    def test_outside_threshold(self) -> None:
        # ~111 m north
        assert not is_within_proximity(51.5074, -0.1278, 51.5084, -0.1278, threshold_m=50)

    def test_longitude_scaled_by_latitude(self) -> None:
        # 0.0006 degrees of longitude at London is ~42 m
        assert is_within_proximity(51.5074, -0.1278, 51.5074, -0.1284, threshold_m=50)
