"""Refresh exchange HTTP client.

Talks to the two refresh endpoints through the pipeline's transport, outside
the pipeline itself, so an exchange is never subject to attach/refresh logic.
Every failure is raised as a ``ClassifiedError``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from ..constants import TOKEN_EXPIRY_SAFETY_BUFFER_SECONDS
from ..errors.classifier import classify
from ..errors.internal import ClassifiedError, ErrorKind, TransportError
from ..transport.base import Transport, TransportRequest, TransportResponse
from ..utils.helpers import format_duration, header_value, resolve_url

if TYPE_CHECKING:
    from ..client.config import ClientConfig


@dataclass
class TokenResult:
    """Result of a successful access token refresh exchange.

    Attributes:
        access_token: The new access token.
        refresh_token: A rotated refresh token, if the endpoint returned one.
        expires_at: Buffered expiry hint derived from ``expires_in``.
    """

    access_token: str
    refresh_token: str | None
    expires_at: datetime | None


def _first_str(data: Any, *keys: str) -> str | None:
    if not isinstance(data, dict):
        return None
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value:
            return value
    return None


def _expiry_from(expires_in: Any) -> datetime | None:
    if not isinstance(expires_in, int | float) or expires_in <= 0:
        return None
    # Apply safety buffer so the hint errs on the early side
    safe_expires = max(expires_in - TOKEN_EXPIRY_SAFETY_BUFFER_SECONDS, 0)
    return datetime.now(UTC) + timedelta(seconds=safe_expires)


class RefreshClient:
    """Client for the access token and CSRF token refresh endpoints."""

    def __init__(self, transport: Transport, get_config: Callable[[], ClientConfig]) -> None:
        """Initialize the refresh client.

        Args:
            transport: Transport used for the exchanges.
            get_config: Returns the pipeline's current configuration.
        """
        self.transport = transport
        self._get_config = get_config

    @property
    def refresh_configured(self) -> bool:
        return self._get_config().refresh_endpoint is not None

    @property
    def csrf_refresh_configured(self) -> bool:
        return self._get_config().csrf_refresh_configured

    def _request(
        self, method: str, endpoint: str, *, body: Any = None, access_token: str | None = None
    ) -> TransportRequest:
        config = self._get_config()
        headers = dict(config.default_headers)
        if access_token:
            headers["Authorization"] = f"Bearer {access_token}"
        return TransportRequest(
            method=method,
            url=resolve_url(config.base_url, endpoint),
            headers=headers,
            body=body,
            timeout=config.refresh_timeout,
        )

    @staticmethod
    def _exchange_failure(exc: TransportError) -> ClassifiedError:
        """Classify a failed exchange.

        A 401/403/419 from a refresh endpoint means the refresh material was
        rejected, which is a denial rather than something another refresh
        could fix.
        """
        error = classify(exc, csrf_refresh_configured=False)
        if error.kind is ErrorKind.AUTH_EXPIRED:
            return ClassifiedError(
                f"Refresh rejected: {error.message}",
                kind=ErrorKind.AUTH_DENIED,
                retryable=False,
                status=error.status,
                code=error.code,
                response_data=error.response_data,
                cause=exc,
            )
        return error

    async def _execute(self, request: TransportRequest, label: str) -> TransportResponse:
        try:
            resp = await self.transport.execute(request)
            if not resp.ok:
                # Transports may hand back a non-2xx answer instead of raising
                raise TransportError(
                    f"Request failed with status code {resp.status}", response=resp
                )
        except TransportError as e:
            logging.warning(
                f"💥 {label} refresh failed status={e.status} code={e.code} error={str(e)}"
            )
            raise self._exchange_failure(e) from e
        return resp

    async def refresh_access(self, refresh_token: str) -> TokenResult:
        """Exchange ``refresh_token`` for a new access token.

        Raises:
            ClassifiedError: ``AUTH_DENIED`` when no endpoint is configured or
                the endpoint rejects the token, ``TIMEOUT``/``NETWORK`` when it
                is unreachable, ``UNKNOWN`` when the response lacks a token.
        """
        config = self._get_config()
        if not config.refresh_endpoint:
            raise ClassifiedError(
                "No refresh endpoint configured", kind=ErrorKind.AUTH_DENIED, retryable=False
            )
        request = self._request(
            config.refresh_method,
            config.refresh_endpoint,
            body={"refresh_token": refresh_token},
        )
        resp = await self._execute(request, "Access token")

        new_access = _first_str(resp.data, "access_token", "accessToken", "token")
        if not new_access:
            raise ClassifiedError(
                "Missing access_token in refresh response",
                kind=ErrorKind.UNKNOWN,
                retryable=False,
                status=resp.status,
                response_data=resp.data,
            )
        new_refresh = _first_str(resp.data, "refresh_token", "refreshToken")
        expires_in = resp.data.get("expires_in") if isinstance(resp.data, dict) else None
        logging.info(
            f"🔄 Access token refreshed (lifetime {format_duration(expires_in)}) rotated_refresh={new_refresh is not None}"
        )
        return TokenResult(new_access, new_refresh, _expiry_from(expires_in))

    async def refresh_csrf(self, access_token: str | None = None) -> str:
        """Fetch a new CSRF token.

        The token is read from the configured body field, falling back to
        the CSRF response header.

        Raises:
            ClassifiedError: ``CLIENT_ERROR`` when no endpoint is configured,
                the classified transport failure otherwise, ``UNKNOWN`` when
                the response carries no token.
        """
        config = self._get_config()
        if not config.csrf_refresh_endpoint:
            raise ClassifiedError(
                "No CSRF refresh endpoint configured", kind=ErrorKind.CLIENT_ERROR, retryable=False
            )
        request = self._request(
            config.csrf_refresh_method, config.csrf_refresh_endpoint, access_token=access_token
        )
        resp = await self._execute(request, "CSRF token")

        token = _first_str(resp.data, config.csrf_token_field, "csrfToken") or header_value(
            resp.headers, config.csrf_header_name
        )
        if not token:
            raise ClassifiedError(
                "Missing CSRF token in refresh response",
                kind=ErrorKind.UNKNOWN,
                retryable=False,
                status=resp.status,
                response_data=resp.data,
            )
        logging.info("🛡️ CSRF token refreshed")
        return token
