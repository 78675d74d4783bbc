"""
Error taxonomy shared by the HTTP client, provider adapters and the aggregator
"""
from enum import Enum
from typing import Optional

import httpx


class ErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    BLOCKED = "blocked"
    TIMEOUT = "timeout"
    CLIENT_ERROR = "client_error"
    SERVER_ERROR = "server_error"
    UNKNOWN = "unknown"


class SourceError(Exception):
    """Base error for a single data source call"""

    kind = ErrorKind.UNKNOWN
    retryable = False

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class NotFoundError(SourceError):
    """City could not be resolved by a geo-bound source"""

    kind = ErrorKind.NOT_FOUND


class BlockedError(SourceError):
    """Network or origin policy failure; retrying cannot succeed"""

    kind = ErrorKind.BLOCKED


class RequestTimeoutError(SourceError):
    kind = ErrorKind.TIMEOUT
    retryable = True


class ClientError(SourceError):
    kind = ErrorKind.CLIENT_ERROR

    def __init__(self, message: str, status_code: int, url: Optional[str] = None):
        super().__init__(message, url)
        self.status_code = status_code


class ServerError(SourceError):
    kind = ErrorKind.SERVER_ERROR
    retryable = True

    def __init__(self, message: str, status_code: int, url: Optional[str] = None):
        super().__init__(message, url)
        self.status_code = status_code


class UnknownError(SourceError):
    kind = ErrorKind.UNKNOWN


class AggregationFailed(Exception):
    """Raised when the mandatory source fails and no snapshot can be built"""

    def __init__(self, city: str, reason: str = "weather unavailable", cause: Optional[BaseException] = None):
        super().__init__(f"Failed to fetch data for {city}")
        self.city = city
        self.reason = reason
        self.cause = cause


def classify_error(exc: BaseException) -> ErrorKind:
    """Map any exception raised while talking to a source onto an ErrorKind"""
    if isinstance(exc, SourceError):
        return exc.kind
    if isinstance(exc, httpx.TimeoutException):
        return ErrorKind.TIMEOUT
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        if 400 <= status < 500:
            return ErrorKind.CLIENT_ERROR
        if status >= 500:
            return ErrorKind.SERVER_ERROR
    if isinstance(exc, httpx.TransportError):
        return ErrorKind.BLOCKED
    return ErrorKind.UNKNOWN
