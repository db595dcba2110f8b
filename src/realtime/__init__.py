"""Realtime channel to the ride backend."""

from .connection import ConnectionManager, ConnectionState
from .messages import InboundMessage, RideRequest

__all__ = ["ConnectionManager", "ConnectionState", "InboundMessage", "RideRequest"]
