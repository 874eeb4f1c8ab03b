"""Base exception classes for domain-level errors."""

from __future__ import annotations


class DomainError(Exception):
    """Base exception for all domain-level errors."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code or self.__class__.__name__


class InvalidOperationError(DomainError):
    """Raised when an operation is invalid in the current state."""

    def __init__(self, operation: str, current_state: str, message: str | None = None) -> None:
        msg = message or f"Cannot perform '{operation}' in state '{current_state}'"
        super().__init__(msg, code="INVALID_OPERATION")
        self.operation = operation
        self.current_state = current_state


class PlaybackError(DomainError):
    """Raised when a playback session fails for a reason worth reporting."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message, code=code or "PLAYBACK_ERROR")


class StreamResolutionError(PlaybackError):
    """Raised when a source cannot be turned into a playable stream."""

    def __init__(self, source_url: str, message: str | None = None) -> None:
        msg = message or f"Could not resolve a playable stream for '{source_url}'"
        super().__init__(msg, code="STREAM_RESOLUTION_ERROR")
        self.source_url = source_url


class StreamWorkaroundError(PlaybackError):
    """Expected, transient stream fault that is retried quietly.

    Raised by resolvers or engines when the upstream is known to recover on a
    fresh attempt. Never surfaced to users.
    """

    type = "workaround"

    def __init__(self, message: str = "Transient stream fault") -> None:
        super().__init__(message, code="STREAM_WORKAROUND")


class PlaybackTimeoutError(PlaybackError):
    """Raised when the engine does not reach a status within the allotted time."""

    def __init__(self, status: str, timeout: float, message: str | None = None) -> None:
        msg = message or f"Engine did not enter '{status}' within {timeout:g}s"
        super().__init__(msg, code="PLAYBACK_TIMEOUT")
        self.status = status
        self.timeout = timeout
