"""Resilient client-side WebSocket channel.

One ``ConnectionManager`` owns at most one live socket. It registers the
local user right after the socket opens, dispatches inbound frames by
type, and reconnects with jittered exponential backoff until
``disconnect()`` is called.
"""

import asyncio
import contextlib
import json
import logging
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any, Literal, Protocol

import websockets
from websockets.exceptions import WebSocketException

from app_logging import log_context
from core.retry import BackoffPolicy
from realtime.messages import (
    InboundMessage,
    RideRequest,
    booking_request_message,
    parse_message,
    register_message,
)

logger = logging.getLogger(__name__)


class ConnectionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    BACKOFF = "backoff"


class Socket(Protocol):
    async def send(self, message: str) -> None: ...

    async def close(self) -> None: ...

    def __aiter__(self) -> Any: ...


ConnectFactory = Callable[..., Awaitable[Socket]]
MessageHandler = Callable[[InboundMessage], None]
StateListener = Callable[[ConnectionState], None]

_CONNECT_ERRORS = (OSError, TimeoutError, WebSocketException)


class ConnectionManager:
    def __init__(
        self,
        url: str,
        user_type: Literal["passenger", "driver"] = "passenger",
        user_id: int | None = None,
        on_message: MessageHandler | None = None,
        backoff: BackoffPolicy | None = None,
        connect_factory: ConnectFactory | None = None,
        open_timeout: float = 10.0,
    ):
        self.url = url
        self.user_type = user_type
        self.user_id = user_id
        self.open_timeout = open_timeout
        self._on_message = on_message
        self._backoff = backoff or BackoffPolicy()
        self._connect_factory = connect_factory or websockets.connect

        self._state = ConnectionState.DISCONNECTED
        self._connection_error: str | None = None
        self._socket: Socket | None = None
        self._reader: asyncio.Task[None] | None = None
        self._reconnect_handle: asyncio.TimerHandle | None = None
        self._reconnect_attempts = 0
        self._next_reconnect_delay: float | None = None
        self._closing = False
        self._connected_event = asyncio.Event()

        self._handlers: dict[str, list[MessageHandler]] = {}
        self._state_listeners: list[StateListener] = []

    # -- observable state -------------------------------------------------

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def is_connected(self) -> bool:
        return self._state == ConnectionState.CONNECTED

    @property
    def connection_error(self) -> str | None:
        return self._connection_error

    @property
    def reconnect_attempts(self) -> int:
        return self._reconnect_attempts

    @property
    def reconnect_scheduled(self) -> bool:
        return self._reconnect_handle is not None

    @property
    def next_reconnect_delay(self) -> float | None:
        """Delay of the currently pending reconnect, if one is scheduled."""
        return self._next_reconnect_delay if self.reconnect_scheduled else None

    def add_state_listener(self, listener: StateListener) -> Callable[[], None]:
        self._state_listeners.append(listener)

        def remove() -> None:
            if listener in self._state_listeners:
                self._state_listeners.remove(listener)

        return remove

    def on(self, message_type: str, handler: MessageHandler) -> Callable[[], None]:
        """Register a handler for one message type; returns a remover."""
        handlers = self._handlers.setdefault(message_type, [])
        handlers.append(handler)

        def remove() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return remove

    async def wait_until_connected(self, timeout: float | None = None) -> bool:
        try:
            await asyncio.wait_for(self._connected_event.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True

    # -- lifecycle -----------------------------------------------------------

    def connect(self) -> None:
        """Open the channel in the background.

        No-op when no URL is configured or a connection attempt is already
        running. Must be called from within a running event loop.
        """
        if not self.url:
            logger.info("No WebSocket URL provided")
            return
        if self._reader is not None and not self._reader.done():
            logger.debug("Connection attempt already in progress")
            return

        self._closing = False
        self._cancel_reconnect()
        self._reader = asyncio.get_running_loop().create_task(self._run())

    async def disconnect(self) -> None:
        """Close the socket and stop the reconnect loop."""
        self._closing = True
        self._cancel_reconnect()

        socket, self._socket = self._socket, None
        if socket is not None:
            with contextlib.suppress(*_CONNECT_ERRORS):
                await socket.close()

        reader, self._reader = self._reader, None
        if reader is not None and not reader.done() and reader is not asyncio.current_task():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader

        self._set_state(ConnectionState.DISCONNECTED)

    async def __aenter__(self) -> "ConnectionManager":
        self.connect()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.disconnect()

    # -- sending ---------------------------------------------------------------

    async def send_message(self, message: dict[str, Any]) -> bool:
        """Send one frame if connected.

        Returns False when the message was dropped; nothing is queued.
        """
        if self._socket is None or not self.is_connected:
            logger.warning("WebSocket not connected, cannot send message")
            return False

        try:
            payload = json.dumps(message)
        except (TypeError, ValueError) as e:
            logger.error(f"Message is not JSON serialisable: {e}")
            return False

        try:
            await self._socket.send(payload)
        except _CONNECT_ERRORS as e:
            logger.warning(f"Failed to send {message.get('type')} message: {e}")
            return False

        logger.debug(f"Sent {message.get('type')} message")
        return True

    async def send_ride_request(self, request: RideRequest) -> bool:
        message = booking_request_message(request)
        logger.info(f"Sending booking_request for passenger {request.passenger_id}")
        return await self.send_message(message)

    # -- internals -----------------------------------------------------------

    async def _run(self) -> None:
        with log_context(
            connection_url=self.url, user_type=self.user_type, user_id=self.user_id
        ):
            self._set_state(ConnectionState.CONNECTING)
            logger.info(f"Attempting WebSocket connection to {self.url}")

            try:
                socket = await self._connect_factory(self.url, open_timeout=self.open_timeout)
            except _CONNECT_ERRORS as e:
                logger.error(f"WebSocket error: {e}")
                self._connection_error = f"Connection failed to {self.url}"
                self._handle_closed()
                return

            self._socket = socket
            self._reconnect_attempts = 0
            self._connection_error = None
            self._set_state(ConnectionState.CONNECTED)
            logger.info(f"WebSocket connected to {self.url}")

            if self.user_id:
                logger.info(f"Registering {self.user_type} {self.user_id}")
                await self.send_message(register_message(self.user_type, self.user_id))

            try:
                async for raw in socket:
                    self._dispatch(raw)
            except _CONNECT_ERRORS as e:
                logger.error(f"WebSocket error: {e}")
                self._connection_error = f"Connection failed to {self.url}"

            logger.info(f"WebSocket disconnected from {self.url}")
            self._handle_closed()

    def _dispatch(self, raw: str | bytes) -> None:
        try:
            message = parse_message(raw)
        except ValueError as e:
            logger.warning(f"Error parsing WebSocket message: {e}")
            return

        logger.debug(f"WebSocket message received: {message.type}")
        handlers = list(self._handlers.get(message.type, ()))
        if self._on_message is not None:
            handlers.append(self._on_message)

        for handler in handlers:
            try:
                handler(message)
            except Exception:
                logger.exception(f"Handler for {message.type} failed")

    def _handle_closed(self) -> None:
        self._socket = None
        self._reader = None
        if self._closing:
            self._set_state(ConnectionState.DISCONNECTED)
            return
        self._schedule_reconnect()

    def _schedule_reconnect(self) -> None:
        if self._backoff.exhausted(self._reconnect_attempts):
            self._connection_error = (
                f"Gave up reconnecting to {self.url} "
                f"after {self._reconnect_attempts} attempts"
            )
            logger.error(self._connection_error)
            self._set_state(ConnectionState.DISCONNECTED)
            return

        delay = self._backoff.delay_for(self._reconnect_attempts)
        self._reconnect_attempts += 1
        self._next_reconnect_delay = delay
        self._set_state(ConnectionState.BACKOFF)
        logger.info(f"Reconnecting in {delay:.2f}s (attempt {self._reconnect_attempts})")
        self._reconnect_handle = asyncio.get_running_loop().call_later(delay, self._reconnect)

    def _reconnect(self) -> None:
        self._reconnect_handle = None
        if self._closing:
            return
        self.connect()

    def _cancel_reconnect(self) -> None:
        if self._reconnect_handle is not None:
            self._reconnect_handle.cancel()
            self._reconnect_handle = None

    def _set_state(self, state: ConnectionState) -> None:
        if state == ConnectionState.CONNECTED:
            self._connected_event.set()
        else:
            self._connected_event.clear()

        if state == self._state:
            return
        self._state = state
        for listener in list(self._state_listeners):
            try:
                listener(state)
            except Exception:
                logger.exception("Connection state listener failed")
