import asyncio
import random
from unittest.mock import Mock

import pytest

from geo.models import Location
from notifications.models import PermissionState
from notifications.store import NotificationStore
from notifications.surfaces import LoggingNotifier


@pytest.fixture
def pickup() -> Location:
    """Central London pickup point."""
    return Location(lat=51.5074, lng=-0.1278, address="Trafalgar Square")


@pytest.fixture
def dropoff() -> Location:
    return Location(lat=51.5174, lng=-0.1378, address="Marylebone")


@pytest.fixture
def mock_toaster() -> Mock:
    """Records toasts instead of displaying them."""
    return Mock()


@pytest.fixture
def granted_notifier() -> LoggingNotifier:
    return LoggingNotifier(initial=PermissionState.GRANTED)


@pytest.fixture
def notification_store(mock_toaster: Mock) -> NotificationStore:
    return NotificationStore(toaster=mock_toaster, native=LoggingNotifier())


@pytest.fixture
def seeded_rng() -> random.Random:
    return random.Random(42)


class FakeSocket:
    """In-memory stand-in for a websockets client connection.

    Frames pushed with ``feed`` are yielded by ``async for``; ``drop``
    ends the stream as if the server closed the connection.
    """

    _CLOSED = object()

    def __init__(self) -> None:
        self.sent: list[str] = []
        self.closed = False
        self._inbox: asyncio.Queue = asyncio.Queue()

    async def send(self, message: str) -> None:
        self.sent.append(message)

    async def close(self) -> None:
        self.closed = True
        self._inbox.put_nowait(self._CLOSED)

    def feed(self, raw: str) -> None:
        self._inbox.put_nowait(raw)

    def drop(self) -> None:
        self._inbox.put_nowait(self._CLOSED)

    def __aiter__(self) -> "FakeSocket":
        return self

    async def __anext__(self) -> str:
        item = await self._inbox.get()
        if item is self._CLOSED:
            raise StopAsyncIteration
        return item


class FakeConnector:
    """Connect factory returning queued sockets (or raising queued errors)."""

    def __init__(self, *outcomes: object) -> None:
        self.outcomes = list(outcomes)
        self.calls: list[tuple[str, dict]] = []

    async def __call__(self, url: str, **kwargs: object) -> FakeSocket:
        self.calls.append((url, kwargs))
        outcome = self.outcomes.pop(0) if self.outcomes else FakeSocket()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome  # type: ignore[return-value]


@pytest.fixture
def fake_socket() -> FakeSocket:
    return FakeSocket()


async def settle(rounds: int = 5) -> None:
    """Let scheduled tasks and callbacks run."""
    for _ in range(rounds):
        await asyncio.sleep(0)
