"""Transport layer: the HTTP execution primitive wrapped by the pipeline."""

from .aiohttp_transport import AiohttpTransport
from .base import (
    NETWORK_CODE,
    TIMEOUT_CODE,
    TIMEOUT_CODES,
    Transport,
    TransportRequest,
    TransportResponse,
)

__all__ = [
    "AiohttpTransport",
    "Transport",
    "TransportRequest",
    "TransportResponse",
    "NETWORK_CODE",
    "TIMEOUT_CODE",
    "TIMEOUT_CODES",
]
