"""Request and response types of the pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from typing import Any

from ..transport.base import TransportResponse


@dataclass(frozen=True)
class RequestOverrides:
    """Per-request deviations from the pipeline defaults.

    Attributes:
        skip_auth: Send without the Authorization header; a 401 then surfaces
            without an access token refresh.
        skip_csrf: Send without the CSRF header; a 403/419 then surfaces
            without a CSRF refresh.
        skip_refresh: Never refresh credentials for this request.
        timeout: Timeout in seconds, instead of the configured default.
        headers: Extra headers, applied over the default headers.
        params: Query parameters.
    """

    skip_auth: bool = False
    skip_csrf: bool = False
    skip_refresh: bool = False
    timeout: float | None = None
    headers: Mapping[str, str] = field(default_factory=dict)
    params: Mapping[str, Any] | None = None


@dataclass(frozen=True)
class RequestDescriptor:
    """One logical request as it moves through the pipeline.

    Immutable; a retry is a new descriptor with the matching flag set, so each
    kind of refresh happens at most once per logical request.
    """

    method: str
    target: str
    payload: Any = None
    overrides: RequestOverrides = field(default_factory=RequestOverrides)
    auth_retried: bool = False
    csrf_retried: bool = False

    def mark_auth_retried(self) -> RequestDescriptor:
        return replace(self, auth_retried=True)

    def mark_csrf_retried(self) -> RequestDescriptor:
        return replace(self, csrf_retried=True)


@dataclass
class ApiResponse:
    """A successful response handed to the caller."""

    data: Any
    status: int
    status_text: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    success: bool = True

    @classmethod
    def from_transport(cls, response: TransportResponse) -> ApiResponse:
        return cls(
            data=response.data,
            status=response.status,
            status_text=response.status_text,
            headers=dict(response.headers),
        )
