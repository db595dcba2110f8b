"""JSON envelopes exchanged over the realtime channel.

Every frame is ``{"type": <str>, "data": <any>}``. The server is not
versioned and sends some messages flat (fields next to ``type``); those
are normalised so handlers can always read ``message.data``.
"""

import json
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

# Client -> server
REGISTER = "register"
BOOKING_REQUEST = "booking_request"

# Server -> client
CONNECTION_CONFIRMED = "connection_confirmed"
DRIVER_LOCATION_UPDATE = "driver_location_update"
RIDE_STATUS_UPDATE = "ride_status_update"
BOOKING_RESPONSE = "booking_response"
BOOKING_ACCEPTED = "booking_accepted"
BOOKING_DECLINED = "booking_declined"
BOOKING_CONFIRMED = "booking_confirmed"
ERROR = "error"

# Placeholder until the session carries a verified phone number
PASSENGER_PHONE_PLACEHOLDER = "+44"


class InboundMessage(BaseModel):
    type: str
    data: Any = None


def parse_message(raw: str | bytes) -> InboundMessage:
    """Decode one frame.

    Raises:
        ValueError: the frame is not JSON or has no string ``type``
            (json.JSONDecodeError is a ValueError subclass).
    """
    payload = json.loads(raw)
    if not isinstance(payload, dict) or not isinstance(payload.get("type"), str):
        raise ValueError("Message type is required")

    if "data" in payload:
        return InboundMessage(type=payload["type"], data=payload["data"])

    flat = {key: value for key, value in payload.items() if key != "type"}
    return InboundMessage(type=payload["type"], data=flat)


def register_message(user_type: Literal["passenger", "driver"], user_id: int) -> dict[str, Any]:
    return {"type": REGISTER, "data": {"userType": user_type, "userId": user_id}}


class RideRequest(BaseModel):
    """Details a passenger sends when asking connected drivers for a ride."""

    model_config = ConfigDict(populate_by_name=True)

    passenger_id: int = Field(alias="passengerId")
    passenger_name: str = Field(alias="passengerName")
    pickup_address: str = Field(alias="pickupAddress")
    destination_address: str = Field(alias="destinationAddress")
    estimated_fare: float = Field(alias="estimatedFare", ge=0.0)
    distance: float = Field(ge=0.0)


def booking_request_message(
    request: RideRequest, now: datetime | None = None
) -> dict[str, Any]:
    timestamp = (now or datetime.now(UTC)).isoformat()
    return {
        "type": BOOKING_REQUEST,
        "data": {
            "passengerId": request.passenger_id,
            "passengerName": request.passenger_name,
            "passengerPhone": PASSENGER_PHONE_PLACEHOLDER,
            "pickupAddress": request.pickup_address,
            "destinationAddress": request.destination_address,
            "estimatedFare": request.estimated_fare,
            "distance": request.distance,
            "serviceType": "standard",
            "timestamp": timestamp,
        },
    }
