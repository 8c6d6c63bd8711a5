"""Failure classification.

Maps a failed dispatch onto ``ErrorKind`` plus a retryable verdict. The
checks run in a fixed order: 401 and 403/419 must be told apart from generic
server errors so the pipeline refreshes credentials instead of retrying
blindly, and so auth/CSRF failures are never treated as transient.
"""

from __future__ import annotations

from typing import Any

import aiohttp

from ..transport.base import TIMEOUT_CODES
from .internal import ClassifiedError, ErrorKind, TransportError

RETRYABLE_STATUSES = frozenset({408, 429, 500, 502, 503, 504})
CSRF_STATUSES = frozenset({403, 419})

NETWORK_MESSAGE = "Network error. Please check your internet connection and try again."
TIMEOUT_MESSAGE = "Request timeout. Please try again."
UNEXPECTED_MESSAGE = "An unexpected error occurred"


def _is_timeout_code(code: str | None) -> bool:
    return bool(code) and code.upper() in TIMEOUT_CODES


def _message_from_body(data: Any, status: int) -> str:
    if isinstance(data, dict):
        for key in ("message", "error"):
            value = data.get(key)
            if isinstance(value, str) and value:
                return value
    return f"HTTP {status}"


def _classify_status(status: int, csrf_refresh_configured: bool) -> tuple[ErrorKind, bool]:
    if status in RETRYABLE_STATUSES:
        return ErrorKind.SERVER_TRANSIENT, True
    if status == 401:
        return ErrorKind.AUTH_EXPIRED, False
    if status in CSRF_STATUSES:
        if csrf_refresh_configured:
            return ErrorKind.CSRF_EXPIRED, False
        return ErrorKind.AUTH_DENIED, False
    if 400 <= status < 500:
        return ErrorKind.CLIENT_ERROR, False
    return ErrorKind.UNKNOWN, False


def _classify_raw(failure: BaseException) -> ClassifiedError:
    # Library exceptions that escaped a transport without being wrapped.
    if isinstance(failure, TimeoutError):
        return ClassifiedError(
            TIMEOUT_MESSAGE, kind=ErrorKind.TIMEOUT, retryable=True, cause=failure
        )
    if isinstance(failure, ConnectionError | aiohttp.ClientConnectionError):
        return ClassifiedError(
            NETWORK_MESSAGE, kind=ErrorKind.NETWORK, retryable=True, cause=failure
        )
    return ClassifiedError(
        f"{UNEXPECTED_MESSAGE}: {failure}",
        kind=ErrorKind.UNKNOWN,
        retryable=False,
        cause=failure,
    )


def classify(
    failure: BaseException, *, csrf_refresh_configured: bool = False
) -> ClassifiedError:
    """Classify a failed dispatch.

    Args:
        failure: Usually a ``TransportError``. An already classified error is
            returned unchanged; a raw timeout or connection error is treated as
            a missing response; any other exception is ``UNKNOWN``.
        csrf_refresh_configured: Whether a CSRF refresh endpoint exists; turns
            403/419 into ``CSRF_EXPIRED`` instead of ``AUTH_DENIED``.

    Returns:
        A new ``ClassifiedError`` (or ``failure`` itself if already classified).
    """
    if isinstance(failure, ClassifiedError):
        return failure
    if not isinstance(failure, TransportError):
        return _classify_raw(failure)

    response = failure.response
    if response is None:
        if _is_timeout_code(failure.code):
            return ClassifiedError(
                TIMEOUT_MESSAGE,
                kind=ErrorKind.TIMEOUT,
                retryable=True,
                code=failure.code,
                cause=failure,
            )
        return ClassifiedError(
            NETWORK_MESSAGE,
            kind=ErrorKind.NETWORK,
            retryable=True,
            code=failure.code,
            cause=failure,
        )

    kind, retryable = _classify_status(response.status, csrf_refresh_configured)
    return ClassifiedError(
        _message_from_body(response.data, response.status),
        kind=kind,
        retryable=retryable,
        status=response.status,
        code=failure.code,
        response_data=response.data,
        cause=failure,
    )


def is_retryable(error: object) -> bool:
    """Return the classifier's retry verdict for ``error``.

    Only ``NETWORK``, ``TIMEOUT`` and ``SERVER_TRANSIENT`` outcomes are
    retryable. Raw timeouts and connection failures that escaped a transport
    count as network failures; anything else is not retryable.
    """
    if isinstance(error, ClassifiedError):
        return error.retryable
    if not isinstance(error, BaseException):
        return False
    # CSRF configuration cannot change the verdict: 403/419 never retry.
    return classify(error).retryable


__all__ = [
    "RETRYABLE_STATUSES",
    "CSRF_STATUSES",
    "classify",
    "is_retryable",
]
