"""Shared primitives: errors, retry/backoff, session state."""

from .exceptions import (
    ConfigurationError,
    NetworkError,
    PermanentError,
    RideSyncError,
    ServiceUnavailableError,
    StateError,
    TransientError,
    ValidationError,
)
from .retry import BackoffPolicy, RetryConfig, with_retry
from .session import Session, SessionState

__all__ = [
    "BackoffPolicy",
    "ConfigurationError",
    "NetworkError",
    "PermanentError",
    "RetryConfig",
    "RideSyncError",
    "ServiceUnavailableError",
    "Session",
    "SessionState",
    "StateError",
    "TransientError",
    "ValidationError",
    "with_retry",
]
