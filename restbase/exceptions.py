"""
Exception hierarchy for Restbase Python SDK.

These are raised by the query builder, the request executor and the
response decoder. Public client methods catch them and report them through
RestbaseResponse.error; only precondition violations (EmptyInList) reach the
caller as exceptions.
"""

from typing import Any, Optional


class RestbaseException(Exception):
    """Base exception for all Restbase SDK errors."""

    code = "UNEXPECTED_ERROR"

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
        details: Optional[Any] = None,
    ) -> None:
        self.message = message
        self.status = status
        self.details = details
        if code is not None:
            self.code = code
        super().__init__(message)


class ParseError(RestbaseException):
    """Raised when a payload is not well-formed JSON."""

    code = "PARSE_ERROR"


class InvalidResponse(RestbaseException):
    """Raised when a response is well-formed but has the wrong shape."""

    code = "INVALID_RESPONSE"


class SerializationError(RestbaseException, ValueError):
    """Raised when a request payload cannot be written as JSON."""

    code = "SERIALIZATION_ERROR"


class NetworkError(RestbaseException):
    """Raised when the transport fails (refused connection, timeout, ...)."""

    code = "NETWORK_ERROR"


class MaxRetriesExceeded(RestbaseException):
    """Raised when every attempt ended with a transient status."""

    code = "MAX_RETRIES_EXCEEDED"

    def __init__(
        self,
        message: str,
        attempts: int,
        status: Optional[int] = None,
    ) -> None:
        self.attempts = attempts
        super().__init__(message, status)


class AuthError(RestbaseException):
    """Raised when an auth endpoint answers with a non-2xx status."""

    code = "AUTH_ERROR"


class QueryError(RestbaseException):
    """Raised when a table query or batch operation fails."""

    code = "QUERY_ERROR"


class StorageError(RestbaseException):
    """Raised when a storage operation fails."""

    code = "STORAGE_ERROR"


class RpcError(RestbaseException):
    """Raised when a remote procedure call fails."""

    code = "RPC_ERROR"


class RealtimeError(RestbaseException):
    """Raised when the realtime socket cannot be used."""

    code = "REALTIME_ERROR"


class EmptyInList(RestbaseException, ValueError):
    """Raised when an ``in`` filter is given no values."""

    code = "EMPTY_IN_LIST"

    def __init__(self, column: str) -> None:
        self.column = column
        super().__init__(f"in() filter on '{column}' requires at least one value")
