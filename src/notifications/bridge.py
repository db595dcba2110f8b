"""Mirrors realtime pushes into the notification store."""

import logging
from collections.abc import Callable
from typing import Any

from notifications.models import NotificationType, Priority
from notifications.store import NotificationStore
from realtime import messages
from realtime.connection import ConnectionManager
from realtime.messages import InboundMessage

logger = logging.getLogger(__name__)

RIDE_STATUS_TEXT = {
    "searching": "Finding Driver",
    "driver_assigned": "Driver Assigned",
    "en_route": "Driver En Route",
    "arrived": "Driver Arrived",
    "in_progress": "Trip in Progress",
    "completed": "Trip Completed",
}


def _payload(message: InboundMessage) -> dict[str, Any]:
    return message.data if isinstance(message.data, dict) else {}


def bind_realtime(store: NotificationStore, manager: ConnectionManager) -> Callable[[], None]:
    """Register booking and ride-status handlers; returns a callable that removes them."""

    def on_booking_confirmed(message: InboundMessage) -> None:
        store.notify_booking_confirmed(_payload(message))

    def on_booking_accepted(message: InboundMessage) -> None:
        store.send_notification(
            NotificationType.RIDE_UPDATE,
            "Booking Accepted",
            "A driver accepted your ride request",
            priority=Priority.HIGH,
            data=_payload(message),
        )

    def on_booking_declined(message: InboundMessage) -> None:
        store.send_notification(
            NotificationType.RIDE_UPDATE,
            "Booking Declined",
            "The driver declined your ride request",
            priority=Priority.MEDIUM,
            data=_payload(message),
        )

    def on_ride_status(message: InboundMessage) -> None:
        data = _payload(message)
        status = data.get("status")
        if not isinstance(status, str):
            logger.warning("Ride status update without status")
            return
        text = RIDE_STATUS_TEXT.get(status, "Unknown")
        priority = Priority.HIGH if status == "arrived" else Priority.LOW
        store.send_notification(
            NotificationType.RIDE_UPDATE,
            "Ride Update",
            text,
            priority=priority,
            data=data,
        )

    removers = [
        manager.on(messages.BOOKING_CONFIRMED, on_booking_confirmed),
        manager.on(messages.BOOKING_ACCEPTED, on_booking_accepted),
        manager.on(messages.BOOKING_DECLINED, on_booking_declined),
        manager.on(messages.RIDE_STATUS_UPDATE, on_ride_status),
    ]

    def unbind() -> None:
        for remove in removers:
            remove()

    return unbind
