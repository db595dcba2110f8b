from collections.abc import Callable
from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, Enum):
    RIDE_UPDATE = "ride_update"
    PRICE_ALERT = "price_alert"
    DRIVER_ARRIVAL = "driver_arrival"
    SAFETY_CHECK = "safety_check"
    BOOKING_CONFIRMED = "booking_confirmed"


class Priority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PermissionState(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


class NotificationAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    label: str
    action: Callable[[], None]


class SmartNotification(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: NotificationType
    title: str
    message: str
    timestamp: datetime
    priority: Priority
    actions: tuple[NotificationAction, ...] = ()
    data: dict[str, Any] = Field(default_factory=dict)

    @property
    def requires_interaction(self) -> bool:
        return self.priority == Priority.URGENT
