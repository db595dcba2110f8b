"""Output surfaces for notifications: transient toasts and native alerts."""

import logging
from typing import Literal, Protocol

from notifications.models import PermissionState

logger = logging.getLogger(__name__)

ToastVariant = Literal["default", "destructive"]


class Toaster(Protocol):
    def toast(self, title: str, description: str, variant: ToastVariant = "default") -> None: ...


class NativeNotifier(Protocol):
    """Operating-system notification surface."""

    @property
    def supported(self) -> bool: ...

    def permission(self) -> PermissionState: ...

    async def request_permission(self) -> PermissionState: ...

    def show(self, title: str, body: str, tag: str, require_interaction: bool) -> None: ...


class LoggingToaster:
    """Toaster that writes toasts to the log."""

    def toast(self, title: str, description: str, variant: ToastVariant = "default") -> None:
        level = logging.WARNING if variant == "destructive" else logging.INFO
        logger.log(level, f"{title}: {description}")


class LoggingNotifier:
    """Native surface for headless runs.

    Starts with ``initial`` permission; a request grants it unless the
    surface was created denied.
    """

    def __init__(self, initial: PermissionState = PermissionState.DEFAULT):
        self._permission = initial

    @property
    def supported(self) -> bool:
        return True

    def permission(self) -> PermissionState:
        return self._permission

    async def request_permission(self) -> PermissionState:
        if self._permission == PermissionState.DEFAULT:
            self._permission = PermissionState.GRANTED
        return self._permission

    def show(self, title: str, body: str, tag: str, require_interaction: bool) -> None:
        sticky = " (sticky)" if require_interaction else ""
        logger.info(f"[{tag}]{sticky} {title}: {body}")


class UnsupportedNotifier:
    """Platform without any native notification support."""

    @property
    def supported(self) -> bool:
        return False

    def permission(self) -> PermissionState:
        return PermissionState.DENIED

    async def request_permission(self) -> PermissionState:
        return PermissionState.DENIED

    def show(self, title: str, body: str, tag: str, require_interaction: bool) -> None:
        raise NotImplementedError("Native notifications are not supported")
