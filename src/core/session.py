"""Explicit session container for the signed-in user.

Holds identity and authentication state in one place so that the realtime
channel, booking requests and notifications all read the same values.
Subscribers are told about every change.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass, replace
from typing import Literal

from .exceptions import StateError

logger = logging.getLogger(__name__)

UserType = Literal["passenger", "driver"]


@dataclass(frozen=True)
class SessionState:
    user_type: UserType = "passenger"
    user_id: int | None = None
    display_name: str | None = None
    authenticated: bool = False


SessionListener = Callable[[SessionState], None]


class Session:
    def __init__(self, state: SessionState | None = None):
        self._state = state or SessionState()
        self._listeners: list[SessionListener] = []

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def user_id(self) -> int | None:
        return self._state.user_id

    @property
    def user_type(self) -> UserType:
        return self._state.user_type

    @property
    def is_authenticated(self) -> bool:
        return self._state.authenticated

    def login(
        self,
        user_id: int,
        user_type: UserType = "passenger",
        display_name: str | None = None,
    ) -> SessionState:
        if user_id <= 0:
            raise StateError(f"Invalid user id: {user_id}")
        self._set(
            SessionState(
                user_type=user_type,
                user_id=user_id,
                display_name=display_name,
                authenticated=True,
            )
        )
        logger.info(f"Session started for {user_type} {user_id}")
        return self._state

    def logout(self) -> None:
        if not self._state.authenticated:
            return
        self._set(replace(SessionState(), user_type=self._state.user_type))
        logger.info("Session ended")

    def subscribe(self, listener: SessionListener) -> Callable[[], None]:
        """Register a listener; returns a callable that removes it."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set(self, state: SessionState) -> None:
        if state == self._state:
            return
        self._state = state
        for listener in list(self._listeners):
            listener(state)
