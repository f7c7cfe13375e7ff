"""Custom exception hierarchy."""

from __future__ import annotations


class RestError(Exception):
    """Base exception for all library errors."""

    pass


class BindingError(RestError):
    """A call could not be bound to concrete parameter values.

    Raised for unresolved placeholders, missing required parameters and
    unknown parameter names. This is a caller bug and is never retried.
    """

    def __init__(self, message: str, descriptor_id: str | None = None) -> None:
        super().__init__(message)
        self.descriptor_id = descriptor_id


class TransportError(RestError):
    """Network-level failure (timeout, connection reset, cancellation).

    The runtime never retries; ``retryable`` tells an external retry
    policy whether trying again makes sense.
    """

    def __init__(self, message: str, *, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class DecodeError(RestError):
    """Response body was malformed or not what the decoder expected."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ApiStatusError(DecodeError):
    """Remote API answered with a non-success status."""

    def __init__(self, message: str, status_code: int, reason: str | None = None) -> None:
        super().__init__(message, status_code=status_code)
        self.reason = reason


class RateLimitError(ApiStatusError):
    """Remote API rate limit exceeded."""

    def __init__(self, message: str, retry_after: float = 60) -> None:
        super().__init__(message, status_code=429, reason="rateLimitExceeded")
        self.retry_after = retry_after


class BatchPartError(RestError):
    """One part of a batch response was missing or could not be parsed.

    Isolated to the item at ``index``; the rest of the batch is unaffected.
    """

    def __init__(self, message: str, index: int) -> None:
        super().__init__(message)
        self.index = index


class ConfigurationError(RestError):
    """Invalid runtime configuration, detected before any network call."""

    pass
