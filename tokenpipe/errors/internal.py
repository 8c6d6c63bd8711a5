"""Centralized internal error hierarchy.

These exceptions provide semantic categories for the refresh and retry logic.
Transports raise ``TransportError`` for every failed dispatch; the classifier
turns it into a ``ClassifiedError`` which is the only failure type callers of
the pipeline ever see. Never surface raw aiohttp / JSON errors to callers;
wrap them instead.

Classes:
  InternalError     – Base for all internal errors.
  TransportError    – A dispatch failed (no response, or a non-2xx response).
  ClassifiedError   – A failure normalized into an ``ErrorKind`` with a
                      retryable verdict.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..transport.base import TransportResponse


class ErrorKind(str, Enum):
    """Failure taxonomy produced by the classifier.

    Attributes:
        NETWORK: No response received (connection refused, DNS, reset).
        TIMEOUT: No response received before the transport timeout.
        SERVER_TRANSIENT: 408, 429 or a 5xx gateway/server status.
        AUTH_EXPIRED: 401; recovered by one access token refresh.
        CSRF_EXPIRED: 403/419 with a CSRF refresh endpoint configured.
        AUTH_DENIED: 403/419 without CSRF refresh, or no refresh token.
        CLIENT_ERROR: Any other 4xx.
        UNKNOWN: Anything else.
    """

    NETWORK = "network"
    TIMEOUT = "timeout"
    SERVER_TRANSIENT = "server_transient"
    AUTH_EXPIRED = "auth_expired"
    CSRF_EXPIRED = "csrf_expired"
    AUTH_DENIED = "auth_denied"
    CLIENT_ERROR = "client_error"
    UNKNOWN = "unknown"


class InternalError(Exception):
    """Base class for all internal errors with metadata support.

    Attributes:
        data: Dictionary containing arbitrary structured context data.

    Args:
        message: Descriptive error message.
        data: Optional mapping of additional context data.
    """

    data: dict[str, object]

    def __init__(
        self, message: str, *, data: Mapping[str, object] | None = None
    ) -> None:
        super().__init__(message)
        # Copy into a plain dict to avoid unexpected mutations from caller.
        self.data = dict(data) if data else {}


class TransportError(InternalError):
    """Raised by a transport when a dispatched request fails.

    Either ``response`` is set (the server answered with a non-2xx status) or
    it is None and ``code`` carries the transport-level reason, e.g.
    ``ECONNABORTED`` for a timeout or ``ERR_NETWORK`` for a connection failure.

    Args:
        message: Descriptive error message.
        response: The failed response, if the server answered.
        code: Transport-level failure code.
        cause: The underlying library exception.
    """

    def __init__(
        self,
        message: str,
        *,
        response: TransportResponse | None = None,
        code: str | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, data={"code": code} if code else None)
        self.response = response
        self.code = code
        self.cause = cause

    @property
    def status(self) -> int | None:
        return self.response.status if self.response is not None else None


class ClassifiedError(InternalError):
    """A failure normalized into the pipeline's taxonomy.

    Produced once per failed attempt by the classifier and never mutated
    afterwards; all attributes are read-only.

    Args:
        message: Human readable message.
        kind: Classification of the failure.
        retryable: Whether a caller-level retry policy may try again.
        status: HTTP status of the failed response, if any.
        code: Transport-level failure code, if any.
        response_data: Decoded body of the failed response, if any.
        cause: The underlying exception.
    """

    def __init__(
        self,
        message: str,
        *,
        kind: ErrorKind,
        retryable: bool,
        status: int | None = None,
        code: str | None = None,
        response_data: Any = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(
            message, data={"kind": kind.value, "status": status, "code": code}
        )
        self._message = message
        self._kind = kind
        self._retryable = retryable
        self._status = status
        self._code = code
        self._response_data = response_data
        self._cause = cause

    @property
    def message(self) -> str:
        return self._message

    @property
    def kind(self) -> ErrorKind:
        return self._kind

    @property
    def retryable(self) -> bool:
        return self._retryable

    @property
    def status(self) -> int | None:
        return self._status

    @property
    def code(self) -> str | None:
        return self._code

    @property
    def response_data(self) -> Any:
        return self._response_data

    @property
    def cause(self) -> BaseException | None:
        return self._cause

    def __repr__(self) -> str:
        return (
            f"ClassifiedError(kind={self._kind.value}, status={self._status}, "
            f"code={self._code}, retryable={self._retryable}, message={self._message!r})"
        )


__all__ = [
    "ErrorKind",
    "InternalError",
    "TransportError",
    "ClassifiedError",
]
