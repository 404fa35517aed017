"""
API Client Errors

Every failure of an HTTP call is raised as an ApiError subclass carrying
the HTTP status (0 when no response arrived) and a short machine code.
"""

from typing import Any, Optional

from home_budget.models.results import Err, ErrorKind


class ApiError(Exception):
    """Base exception for budget API calls."""

    kind: ErrorKind = ErrorKind.SERVER

    def __init__(
        self,
        message: str,
        status: int = 0,
        code: Optional[str] = None,
        body: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.status = status
        self.code = code
        self.body = body

    def to_err(self) -> Err:
        return Err(self.kind, self.message, self.status)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(status={self.status}, "
            f"code={self.code!r}, message={self.message!r})"
        )


class NetworkError(ApiError):
    """The request never got a response (DNS, refused connection, reset)."""

    kind = ErrorKind.NETWORK

    def __init__(self, message: str = "Network error"):
        super().__init__(message, status=0, code="NETWORK_ERROR")


class RequestTimeoutError(ApiError):
    """The client aborted the request after the configured timeout."""

    kind = ErrorKind.TIMEOUT

    def __init__(self, message: str = "Request timed out"):
        super().__init__(message, status=408, code="TIMEOUT")


class ServerError(ApiError):
    """The server answered with a non-2xx status."""

    kind = ErrorKind.SERVER


class NotFoundError(ServerError):
    """The server answered 404."""

    kind = ErrorKind.NOT_FOUND


class ResponseFormatError(ApiError):
    """A 2xx body that cannot be parsed into the expected shape."""

    kind = ErrorKind.SERVER
