"""Request pipeline package.

Provides:
 - ClientConfig pydantic configuration model
 - RequestPipeline with transparent token refresh
 - ApiService data-only facade
 - RequestOverrides / ApiResponse request and response types
"""

from .config import ClientConfig
from .pipeline import RequestPipeline
from .service import ApiService
from .types import ApiResponse, RequestDescriptor, RequestOverrides

__all__ = [
    "ApiResponse",
    "ApiService",
    "ClientConfig",
    "RequestDescriptor",
    "RequestOverrides",
    "RequestPipeline",
]
