from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

SortMode = Literal["price", "pickup"]


class RideTag(BaseModel):
    model_config = ConfigDict(frozen=True)

    text: str
    type: Literal["success", "warning", "info"] = "info"


class RideOption(BaseModel):
    """One priced offer from a provider for the current route.

    Times are in minutes, distance in kilometers. Field names follow the
    backend's camelCase wire format.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str
    service_id: str = Field(alias="serviceId")
    service_name: str = Field(alias="serviceName")
    service_type: str | None = Field(default=None, alias="serviceType")
    price: float = Field(ge=0.0)
    currency: str = "GBP"
    estimated_pickup_time: float = Field(alias="estimatedPickupTime", ge=0.0)
    estimated_trip_time: float = Field(alias="estimatedTripTime", ge=0.0)
    estimated_distance: float = Field(alias="estimatedDistance", ge=0.0)
    tag: RideTag | None = None


class BookingResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    success: bool = True
    message: str = ""
    redirect_url: str | None = Field(default=None, alias="redirectUrl")
