"""Standardized exception hierarchy for the ride-sync client."""

from typing import Any


class RideSyncError(Exception):
    """Base exception for all ride-sync errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class TransientError(RideSyncError):
    """Errors that may succeed on retry."""

    pass


class NetworkError(TransientError):
    """Network-related transient errors (timeout, connection refused)."""

    pass


class ServiceUnavailableError(TransientError):
    """Remote service temporarily unavailable (5xx responses)."""

    pass


class PermanentError(RideSyncError):
    """Errors that will not succeed on retry."""

    pass


class ValidationError(PermanentError):
    """Invalid input or data format."""

    pass


class StateError(PermanentError):
    """Operation not allowed in the current state."""

    pass


class ConfigurationError(PermanentError):
    """Missing or invalid configuration."""

    pass
