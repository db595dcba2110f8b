"""User-facing notifications."""

from .models import NotificationType, PermissionState, Priority, SmartNotification
from .store import MAX_NOTIFICATIONS, NotificationStore

__all__ = [
    "MAX_NOTIFICATIONS",
    "NotificationStore",
    "NotificationType",
    "PermissionState",
    "Priority",
    "SmartNotification",
]
