"""
Errors raised by the data access layer.

Callers only need to know about ``DataAccessError``; the subclasses exist so the
retry loop can tell transient transport failures from rejected requests.
"""
import aiohttp


class DataAccessError(Exception):
    """Any failure of a backend call."""


class TransportError(DataAccessError):
    """The request never produced a response. Safe to retry."""


class RequestTimeout(TransportError):
    """No response arrived within the configured timeout."""


class NetworkError(TransportError):
    """Connection-level failure (refused, reset, DNS)."""


class HTTPStatusError(DataAccessError):
    """Non-2xx response; the body text is the message."""

    def __init__(self, status: int, message: str):
        super().__init__(message)
        self.status = status
        self.message = message


def is_retryable(exc: BaseException) -> bool:
    if isinstance(exc, TransportError):
        return True
    return isinstance(exc, (TimeoutError, aiohttp.ClientConnectionError))


def error_message(exc: BaseException) -> str:
    """Message to show for a failed call, whatever backend raised it."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc) or exc.__class__.__name__
