"""Bounded in-memory notification store."""

import logging
import uuid
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from notifications.models import (
    NotificationAction,
    NotificationType,
    PermissionState,
    Priority,
    SmartNotification,
)
from notifications.surfaces import LoggingNotifier, LoggingToaster, NativeNotifier, Toaster

logger = logging.getLogger(__name__)

MAX_NOTIFICATIONS = 50

NotificationsListener = Callable[[tuple[SmartNotification, ...]], None]


def new_notification_id() -> str:
    return uuid.uuid4().hex


class NotificationStore:
    """Most-recent-first list of user-facing events.

    Every published notification is also shown as a toast, and mirrored to
    the native surface when permission has been granted. Permission is read
    once at construction and afterwards only changes through
    ``request_permission``.
    """

    def __init__(
        self,
        toaster: Toaster | None = None,
        native: NativeNotifier | None = None,
        max_notifications: int = MAX_NOTIFICATIONS,
        id_factory: Callable[[], str] = new_notification_id,
    ):
        self._toaster = toaster or LoggingToaster()
        self._native = native or LoggingNotifier()
        self._max_notifications = max_notifications
        self._id_factory = id_factory
        self._notifications: list[SmartNotification] = []
        self._listeners: list[NotificationsListener] = []
        self._permission = (
            self._native.permission() if self._native.supported else PermissionState.DEFAULT
        )

    @property
    def notifications(self) -> tuple[SmartNotification, ...]:
        return tuple(self._notifications)

    @property
    def permission(self) -> PermissionState:
        return self._permission

    def subscribe(self, listener: NotificationsListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def request_permission(self) -> bool:
        if not self._native.supported:
            self._toaster.toast(
                "Notifications not supported",
                "This device doesn't support notifications",
                variant="destructive",
            )
            return False

        self._permission = await self._native.request_permission()
        logger.info(f"Notification permission: {self._permission.value}")
        return self._permission == PermissionState.GRANTED

    def send_notification(
        self,
        type: NotificationType,
        title: str,
        message: str,
        priority: Priority = Priority.MEDIUM,
        actions: list[NotificationAction] | None = None,
        data: dict[str, Any] | None = None,
    ) -> str:
        notification = SmartNotification(
            id=self._id_factory(),
            type=type,
            title=title,
            message=message,
            timestamp=datetime.now(UTC),
            priority=priority,
            actions=tuple(actions or ()),
            data=data or {},
        )

        self._notifications = [notification, *self._notifications][: self._max_notifications]
        self._notify_listeners()

        variant = "destructive" if priority == Priority.URGENT else "default"
        self._toaster.toast(title, message, variant=variant)

        if self._permission == PermissionState.GRANTED and self._native.supported:
            try:
                self._native.show(
                    title,
                    message,
                    tag=notification.type.value,
                    require_interaction=notification.requires_interaction,
                )
            except Exception:
                logger.exception("Native notification failed")

        return notification.id

    def remove_notification(self, notification_id: str) -> None:
        remaining = [n for n in self._notifications if n.id != notification_id]
        if len(remaining) == len(self._notifications):
            return
        self._notifications = remaining
        self._notify_listeners()

    def clear_all_notifications(self) -> None:
        if not self._notifications:
            return
        self._notifications = []
        self._notify_listeners()

    # Semantic publishers

    def notify_price_alert(self, route: str, old_price: float, new_price: float) -> str:
        savings = old_price - new_price
        return self.send_notification(
            NotificationType.PRICE_ALERT,
            "Price Drop Alert",
            f"Price for {route} dropped by ${savings:.2f}",
            priority=Priority.MEDIUM,
            data={
                "route": route,
                "oldPrice": old_price,
                "newPrice": new_price,
                "savings": savings,
            },
        )

    def notify_driver_arrival(self, estimated_minutes: int) -> str:
        return self.send_notification(
            NotificationType.DRIVER_ARRIVAL,
            "Driver Arriving Soon",
            f"Your driver will arrive in approximately {estimated_minutes} minutes",
            priority=Priority.HIGH,
            data={"estimatedMinutes": estimated_minutes},
        )

    def notify_safety_check(self) -> str:
        def confirm_safe() -> None:
            self._toaster.toast(
                "Safety confirmed", "Thank you for checking in. Have a great ride!"
            )

        return self.send_notification(
            NotificationType.SAFETY_CHECK,
            "Safety Check-in",
            "How is your ride going? Tap to confirm you're safe and enjoying your journey",
            priority=Priority.HIGH,
            actions=[NotificationAction(label="I'm Safe & Good", action=confirm_safe)],
        )

    def notify_booking_confirmed(self, booking_details: dict[str, Any]) -> str:
        service_name = booking_details.get("serviceName", "")
        return self.send_notification(
            NotificationType.BOOKING_CONFIRMED,
            "Booking Confirmed",
            f"Your {service_name} ride has been booked",
            priority=Priority.MEDIUM,
            data=booking_details,
        )

    def _notify_listeners(self) -> None:
        snapshot = self.notifications
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception:
                logger.exception("Notification listener failed")
