"""Authenticated request pipeline.

Attaches the current credentials to every outbound request and recovers from
an expired access token (401) or CSRF token (403/419) with one coordinated
refresh followed by one replay. Everything else is classified and surfaced to
the caller.
"""

from __future__ import annotations

import logging
from typing import Any

from ..auth_token.client import RefreshClient
from ..auth_token.coordinator import RefreshCoordinator
from ..auth_token.hook_manager import Hook, HookManager, RefreshEvent
from ..auth_token.store import CredentialStore
from ..auth_token.types import RefreshKind
from ..constants import STATE_CHANGING_METHODS
from ..errors.classifier import classify
from ..errors.classifier import is_retryable as _is_retryable
from ..errors.handling import log_error
from ..errors.internal import ClassifiedError, ErrorKind, TransportError
from ..logging_config import FailureStats
from ..transport.aiohttp_transport import AiohttpTransport
from ..transport.base import Transport, TransportRequest
from ..utils.helpers import resolve_url
from .config import HTTP_METHODS, ClientConfig
from .types import ApiResponse, RequestDescriptor, RequestOverrides


class RequestPipeline:
    """HTTP client with transparent access token and CSRF token refresh.

    Each instance owns its credential store, hook registry, failure counts
    and refresh coordinator; concurrent requests on one instance share a single refresh
    per credential kind.
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        *,
        transport: Transport | None = None,
        store: CredentialStore | None = None,
        on_token_refresh: Hook | None = None,
        on_token_refresh_failed: Hook | None = None,
        on_csrf_token_refresh: Hook | None = None,
        on_csrf_token_refresh_failed: Hook | None = None,
    ) -> None:
        """Initialize the pipeline.

        Args:
            config: Client configuration; defaults to ``ClientConfig()``.
            transport: Transport executing the requests. Without one an
                ``AiohttpTransport`` is created and closed by ``close()``.
            store: Credential store; a fresh in-memory store by default.
            on_token_refresh: Called with the new access token.
            on_token_refresh_failed: Called with the ``ClassifiedError`` of a
                failed access token refresh (all credentials are cleared).
            on_csrf_token_refresh: Called with the new CSRF token.
            on_csrf_token_refresh_failed: Called with the ``ClassifiedError``
                of a failed CSRF refresh.
        """
        self._config = config or ClientConfig()
        self._owns_transport = transport is None
        self.transport: Transport = transport or AiohttpTransport(
            default_timeout=self._config.timeout
        )
        self.store = store or CredentialStore()
        self.hooks = HookManager()
        for event, hook in (
            (RefreshEvent.TOKEN_REFRESH, on_token_refresh),
            (RefreshEvent.TOKEN_REFRESH_FAILED, on_token_refresh_failed),
            (RefreshEvent.CSRF_TOKEN_REFRESH, on_csrf_token_refresh),
            (RefreshEvent.CSRF_TOKEN_REFRESH_FAILED, on_csrf_token_refresh_failed),
        ):
            if hook is not None:
                self.hooks.register(event, hook)
        self.failures = FailureStats()
        self.refresh_client = RefreshClient(self.transport, self.get_config)
        self.coordinator = RefreshCoordinator(
            self.store, self.refresh_client, self.hooks, self.failures
        )

    # ---- configuration ----

    def get_config(self) -> ClientConfig:
        return self._config

    def update_config(self, **changes: Any) -> ClientConfig:
        """Apply ``changes`` to the configuration.

        The merged configuration is validated as a whole before it replaces
        the current one; on ``ValidationError`` nothing changes.
        """
        merged = {**self._config.model_dump(), **changes}
        self._config = ClientConfig.model_validate(merged)
        logging.debug(f"⚙️ Client config updated keys={sorted(changes)}")
        return self._config

    def register_hook(self, event: RefreshEvent | str, hook: Hook) -> None:
        self.hooks.register(event, hook)

    # ---- credentials ----

    def set_auth_tokens(self, access_token: str | None, refresh_token: str | None = None) -> None:
        """Store a new access token, and the refresh token when given."""
        self.store.set_access(access_token)
        if refresh_token is not None:
            self.store.set_refresh(refresh_token)

    def set_csrf_token(self, token: str | None) -> None:
        self.store.set_csrf(token)

    def get_auth_token(self) -> str | None:
        return self.store.get_access()

    def get_csrf_token(self) -> str | None:
        return self.store.get_csrf()

    def clear_tokens(self) -> None:
        self.store.clear_auth()

    def clear_all_tokens(self) -> None:
        self.store.clear_all()

    @staticmethod
    def is_retryable(error: object) -> bool:
        return _is_retryable(error)

    # ---- requests ----

    async def request(
        self,
        method: str,
        target: str,
        payload: Any = None,
        overrides: RequestOverrides | None = None,
    ) -> ApiResponse:
        """Send one logical request.

        Args:
            method: HTTP method, case-insensitive.
            target: Path relative to ``base_url``, or an absolute URL.
            payload: JSON-serializable body.
            overrides: Per-request options.

        Returns:
            The successful response.

        Raises:
            ClassifiedError: The request failed, after at most one refresh and
                replay per credential kind.
            ValueError: ``method`` is not an HTTP method.
        """
        normalized = method.upper()
        if normalized not in HTTP_METHODS:
            raise ValueError(f"unsupported HTTP method: {method}")
        descriptor = RequestDescriptor(
            method=normalized,
            target=target,
            payload=payload,
            overrides=overrides or RequestOverrides(),
        )
        return await self._send(descriptor)

    async def get(self, target: str, overrides: RequestOverrides | None = None) -> ApiResponse:
        return await self.request("GET", target, overrides=overrides)

    async def post(
        self, target: str, payload: Any = None, overrides: RequestOverrides | None = None
    ) -> ApiResponse:
        return await self.request("POST", target, payload, overrides)

    async def put(
        self, target: str, payload: Any = None, overrides: RequestOverrides | None = None
    ) -> ApiResponse:
        return await self.request("PUT", target, payload, overrides)

    async def patch(
        self, target: str, payload: Any = None, overrides: RequestOverrides | None = None
    ) -> ApiResponse:
        return await self.request("PATCH", target, payload, overrides)

    async def delete(self, target: str, overrides: RequestOverrides | None = None) -> ApiResponse:
        return await self.request("DELETE", target, overrides=overrides)

    def _build(
        self, descriptor: RequestDescriptor
    ) -> tuple[TransportRequest, str | None, str | None]:
        """Build the outbound request from the store's current credentials.

        Returns:
            The request plus the access and CSRF token values it carries.
        """
        config = self._config
        overrides = descriptor.overrides
        headers = dict(config.default_headers)
        headers.update(overrides.headers)

        access = None if overrides.skip_auth else self.store.get_access()
        if access:
            headers["Authorization"] = f"Bearer {access}"

        csrf = None
        if descriptor.method in STATE_CHANGING_METHODS and not overrides.skip_csrf:
            csrf = self.store.get_csrf()
            if csrf:
                headers[config.csrf_header_name] = csrf

        request = TransportRequest(
            method=descriptor.method,
            url=resolve_url(config.base_url, descriptor.target),
            headers=headers,
            body=descriptor.payload,
            params=overrides.params,
            timeout=overrides.timeout or config.timeout,
        )
        return request, access, csrf

    async def _send(self, descriptor: RequestDescriptor) -> ApiResponse:
        request, access, csrf = self._build(descriptor)
        logging.debug(
            f"➡️ {request.method} {request.url} auth_retried={descriptor.auth_retried} csrf_retried={descriptor.csrf_retried}"
        )
        try:
            response = await self.transport.execute(request)
            if not response.ok:
                raise TransportError(
                    f"Request failed with status code {response.status}", response=response
                )
        except Exception as e:
            error = classify(
                e, csrf_refresh_configured=self._config.csrf_refresh_configured
            )
            return await self._recover(descriptor, error, access, csrf)
        return ApiResponse.from_transport(response)

    async def _recover(
        self,
        descriptor: RequestDescriptor,
        error: ClassifiedError,
        access: str | None,
        csrf: str | None,
    ) -> ApiResponse:
        overrides = descriptor.overrides
        # A new CSRF token only helps requests that send the CSRF header
        if (
            error.kind is ErrorKind.CSRF_EXPIRED
            and not descriptor.csrf_retried
            and descriptor.method in STATE_CHANGING_METHODS
            and not overrides.skip_refresh
            and not overrides.skip_csrf
        ):
            logging.info(f"🛡️ CSRF token rejected on {descriptor.method} {descriptor.target}, refreshing")
            await self.coordinator.refresh(RefreshKind.CSRF, stale=csrf)
            return await self._send(descriptor.mark_csrf_retried())

        if (
            error.kind is ErrorKind.AUTH_EXPIRED
            and not descriptor.auth_retried
            and not overrides.skip_refresh
            and not overrides.skip_auth
            and self.coordinator.has_refresh_material(RefreshKind.AUTH)
        ):
            logging.info(f"🔑 Access token rejected on {descriptor.method} {descriptor.target}, refreshing")
            await self.coordinator.refresh(RefreshKind.AUTH, stale=access)
            return await self._send(descriptor.mark_auth_retried())

        log_error(
            f"{descriptor.method} {descriptor.target} failed",
            error,
            context={
                "status": error.status,
                "auth_retried": descriptor.auth_retried,
                "csrf_retried": descriptor.csrf_retried,
            },
            stats=self.failures,
        )
        raise error

    # ---- lifecycle ----

    async def close(self) -> None:
        """Wait for pending coroutine hooks, report failures and close an owned transport."""
        await self.hooks.drain()
        self.failures.log_report()
        if self._owns_transport:
            await self.transport.close()

    async def __aenter__(self) -> RequestPipeline:
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()
