"""tokenpipe: asyncio HTTP client with coordinated token and CSRF refresh."""

from .auth_token import CredentialKind, CredentialStore, RefreshEvent, RefreshKind
from .client import ApiResponse, ApiService, ClientConfig, RequestOverrides, RequestPipeline
from .errors import ClassifiedError, ErrorKind, TransportError, classify, is_retryable
from .transport import AiohttpTransport, Transport, TransportRequest, TransportResponse
from .utils import RetryExhaustedError, retry_transient

__version__ = "0.1.0"

__all__ = [
    "AiohttpTransport",
    "ApiResponse",
    "ApiService",
    "ClassifiedError",
    "ClientConfig",
    "CredentialKind",
    "CredentialStore",
    "ErrorKind",
    "RefreshEvent",
    "RefreshKind",
    "RequestOverrides",
    "RequestPipeline",
    "RetryExhaustedError",
    "Transport",
    "TransportError",
    "TransportRequest",
    "TransportResponse",
    "classify",
    "is_retryable",
    "retry_transient",
]
