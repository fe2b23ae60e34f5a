"""Exception taxonomy for the front-desk sync engine.

The API client raises these; the outbox queue and snapshot cache catch them
and degrade to empty or cached state rather than escalating to the caller.
"""

from __future__ import annotations


class FrontDeskSyncError(RuntimeError):
    """Base exception for all sync engine failures."""


class ValidationError(FrontDeskSyncError, ValueError):
    """Raised when a check-in request is malformed.

    The queue is left untouched when this is raised.
    """


class NetworkError(FrontDeskSyncError):
    """Raised when an outbound call fails at the transport level."""


class ApiError(FrontDeskSyncError):
    """Raised when the backend answers with a non-2xx status.

    Attributes:
        status_code: HTTP status returned by the backend.
        body: Response body text, for logging.
    """

    def __init__(self, status_code: int, message: str, body: str = "") -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.body = body


class ClientError(ApiError):
    """4xx response. Not retryable."""


class ServerError(ApiError):
    """5xx response. Retryable."""


class CorruptStateError(FrontDeskSyncError):
    """Raised when a persisted record cannot be parsed."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"Corrupt state record '{key}': {reason}")
        self.key = key
        self.reason = reason


class OfflineActionError(FrontDeskSyncError):
    """Raised when an action that needs connectivity is attempted offline."""

    def __init__(self, action: str) -> None:
        super().__init__(
            f"Cannot {action} while offline; only check-in is available"
        )
        self.action = action


__all__ = [
    "ApiError",
    "ClientError",
    "CorruptStateError",
    "FrontDeskSyncError",
    "NetworkError",
    "OfflineActionError",
    "ServerError",
    "ValidationError",
]
