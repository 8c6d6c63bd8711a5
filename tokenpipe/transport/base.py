"""Transport protocol definitions.

The pipeline is transport-agnostic: anything implementing ``Transport`` can
execute its requests. A transport must return a ``TransportResponse`` for 2xx
answers and raise ``TransportError`` for everything else, setting ``response``
when the server answered and ``code`` when it did not.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol

# Transport-level failure codes (no response received).
TIMEOUT_CODE = "ECONNABORTED"
NETWORK_CODE = "ERR_NETWORK"
TIMEOUT_CODES = frozenset({TIMEOUT_CODE, "ETIMEDOUT", "TIMEOUT"})


@dataclass(frozen=True)
class TransportRequest:
    """A fully built outbound request.

    Attributes:
        method: Upper-case HTTP method.
        url: Absolute URL.
        headers: Final header set (credentials already attached).
        body: JSON-serializable payload, or None.
        params: Query parameters.
        timeout: Total timeout in seconds, enforced by the transport.
    """

    method: str
    url: str
    headers: Mapping[str, str] = field(default_factory=dict)
    body: Any = None
    params: Mapping[str, Any] | None = None
    timeout: float | None = None


@dataclass(frozen=True)
class TransportResponse:
    """A response as seen by the pipeline."""

    status: int
    data: Any = None
    headers: Mapping[str, str] = field(default_factory=dict)
    status_text: str = ""

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 300


class Transport(Protocol):
    """Protocol for the HTTP execution primitive."""

    async def execute(self, request: TransportRequest) -> TransportResponse:
        """Execute ``request``; raise ``TransportError`` on failure."""
        ...

    async def close(self) -> None:
        """Release transport resources."""
        ...
