"""
Scripted transport and response helpers for pipeline tests.
"""

import asyncio
import inspect
from collections.abc import Callable
from typing import Any
from urllib.parse import urlsplit

from tokenpipe.errors.internal import TransportError
from tokenpipe.transport.base import (
    NETWORK_CODE,
    TIMEOUT_CODE,
    TransportRequest,
    TransportResponse,
)

BASE_URL = "https://api.example.com"
REFRESH_PATH = "/auth/refresh"
CSRF_PATH = "/auth/csrf"

Handler = Callable[[TransportRequest], Any]


def respond(status: int = 200, data: Any = None, headers: dict[str, str] | None = None) -> TransportResponse:
    """Build a response the way a real transport would hand it over."""
    return TransportResponse(status=status, data=data, headers=headers or {}, status_text="")


def timeout_failure() -> TransportError:
    return TransportError("Request timeout", code=TIMEOUT_CODE)


def network_failure() -> TransportError:
    return TransportError("Network error: connection refused", code=NETWORK_CODE)


class FakeTransport:
    """Transport routing requests to per-(method, path) handlers.

    A handler receives the ``TransportRequest`` and returns a
    ``TransportResponse`` (non-2xx responses are raised as ``TransportError``
    like a real transport would, unless ``raise_errors`` is off), raises an
    exception, or is a coroutine function doing either after awaiting
    something.
    """

    def __init__(self, *, raise_errors: bool = True) -> None:
        self.raise_errors = raise_errors
        self.calls: list[TransportRequest] = []
        self.routes: dict[tuple[str, str], Handler] = {}
        self.closed = False

    def route(self, method: str, path: str, handler: Handler) -> None:
        self.routes[(method.upper(), path)] = handler

    def calls_to(self, path: str) -> list[TransportRequest]:
        return [c for c in self.calls if urlsplit(c.url).path == path]

    async def execute(self, request: TransportRequest) -> TransportResponse:
        self.calls.append(request)
        handler = self.routes.get((request.method, urlsplit(request.url).path))
        if handler is None:
            response = respond(404, {"message": "Not Found"})
        else:
            response = handler(request)
            if inspect.isawaitable(response):
                response = await response
        if self.raise_errors and not response.ok:
            raise TransportError(
                f"Request failed with status code {response.status}", response=response
            )
        return response

    async def close(self) -> None:
        self.closed = True


def bearer_guard(valid_token: str, data: Any = None) -> Handler:
    """Handler accepting only ``Bearer <valid_token>``, 401 otherwise."""

    def handler(request: TransportRequest) -> TransportResponse:
        if request.headers.get("Authorization") == f"Bearer {valid_token}":
            return respond(200, data)
        return respond(401, {"message": "Token expired"})

    return handler


def csrf_guard(valid_token: str, data: Any = None, header: str = "X-CSRF-Token") -> Handler:
    """Handler accepting only the given CSRF header value, 419 otherwise."""

    def handler(request: TransportRequest) -> TransportResponse:
        if request.headers.get(header) == valid_token:
            return respond(200, data)
        return respond(419, {"error": "CSRF token mismatch"})

    return handler


def gated(gate: asyncio.Event, handler: Handler) -> Handler:
    """Wrap ``handler`` so it only answers once ``gate`` is set."""

    async def wrapped(request: TransportRequest) -> TransportResponse:
        await gate.wait()
        return handler(request)

    return wrapped


async def wait_until(predicate: Callable[[], bool], attempts: int = 1000) -> None:
    """Yield to the event loop until ``predicate`` holds."""
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")
