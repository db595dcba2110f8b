from typing import Any

import polyline
from pydantic import BaseModel, ConfigDict, Field, field_validator


class Location(BaseModel):
    """A point on the map, optionally labelled with an address."""

    model_config = ConfigDict(frozen=True)

    lat: float = Field(ge=-90.0, le=90.0)
    lng: float = Field(ge=-180.0, le=180.0)
    address: str | None = None

    @property
    def coords(self) -> tuple[float, float]:
        return self.lat, self.lng

    def display_label(self) -> str:
        """Address when known, otherwise coordinates to 4 decimals."""
        return self.address or f"{self.lat:.4f}, {self.lng:.4f}"

    def same_point(self, other: "Location | None") -> bool:
        return other is not None and self.coords == other.coords


DEFAULT_LOCATION = Location(lat=51.5074, lng=-0.1278, address="London, UK")


def decode_polyline(encoded: str, precision: int = 5) -> list[tuple[float, float]]:
    """Decode polyline string to list of (lat, lng) tuples."""
    coords = polyline.decode(encoded, precision)
    return [(lat, lng) for lat, lng in coords]


class RouteInfo(BaseModel):
    """Route summary returned by the directions endpoint.

    ``distance`` is in kilometers and ``duration`` in minutes. ``geometry``
    is optional and may arrive either as coordinate pairs or as an encoded
    polyline.
    """

    origin: Location
    destination: Location
    distance: float = Field(ge=0.0)
    duration: float = Field(ge=0.0)
    geometry: list[tuple[float, float]] = Field(default_factory=list)

    @field_validator("geometry", mode="before")
    @classmethod
    def decode_geometry(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return decode_polyline(v)
        return v

    def path(self) -> list[tuple[float, float]]:
        """Geometry when present, otherwise the straight origin-destination line."""
        return self.geometry or [self.origin.coords, self.destination.coords]
