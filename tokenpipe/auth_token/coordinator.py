"""Single-flight refresh coordination.

One state machine per ``RefreshKind``. The first caller that needs a refresh
flips the slot to REFRESHING and runs the exchange; everyone arriving while it
is in flight parks on a future in the slot's FIFO queue. Settlement releases
the queue in arrival order with the new token, or with the shared failure.

The REFRESHING flag is read and written without any ``await`` in between, so
on a single event loop it is the only mutual exclusion needed.
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from ..errors.classifier import classify
from ..errors.handling import log_error
from ..errors.internal import ClassifiedError, ErrorKind
from .hook_manager import RefreshEvent
from .types import CredentialKind, RefreshKind, RefreshState

if TYPE_CHECKING:
    from ..logging_config import FailureStats
    from .client import RefreshClient
    from .hook_manager import HookManager
    from .store import CredentialStore

_UNSET: Any = object()

_CREDENTIAL_FOR = {
    RefreshKind.AUTH: CredentialKind.ACCESS,
    RefreshKind.CSRF: CredentialKind.CSRF,
}
_SUCCESS_EVENT = {
    RefreshKind.AUTH: RefreshEvent.TOKEN_REFRESH,
    RefreshKind.CSRF: RefreshEvent.CSRF_TOKEN_REFRESH,
}
_FAILURE_EVENT = {
    RefreshKind.AUTH: RefreshEvent.TOKEN_REFRESH_FAILED,
    RefreshKind.CSRF: RefreshEvent.CSRF_TOKEN_REFRESH_FAILED,
}


@dataclass
class RefreshSlot:
    """State of one refresh kind.

    Attributes:
        state: IDLE or REFRESHING.
        waiters: Callers parked behind the in-flight exchange, oldest first.
        exchanges: Number of exchanges started since construction.
    """

    state: RefreshState = RefreshState.IDLE
    waiters: deque[asyncio.Future[str]] = field(default_factory=deque)
    exchanges: int = 0


class RefreshCoordinator:
    """Runs at most one refresh exchange per kind at a time."""

    def __init__(
        self,
        store: CredentialStore,
        client: RefreshClient,
        hooks: HookManager,
        failures: FailureStats | None = None,
    ) -> None:
        self.store = store
        self.client = client
        self.hooks = hooks
        self.failures = failures
        self._slots: dict[RefreshKind, RefreshSlot] = {
            kind: RefreshSlot() for kind in RefreshKind
        }

    def slot(self, kind: RefreshKind) -> RefreshSlot:
        return self._slots[kind]

    def is_refreshing(self, kind: RefreshKind) -> bool:
        return self._slots[kind].state is RefreshState.REFRESHING

    def pending_waiters(self, kind: RefreshKind) -> int:
        return len(self._slots[kind].waiters)

    def has_refresh_material(self, kind: RefreshKind) -> bool:
        if kind is RefreshKind.AUTH:
            return self.store.get_refresh() is not None and self.client.refresh_configured
        return self.client.csrf_refresh_configured

    async def refresh(self, kind: RefreshKind, *, stale: str | None = _UNSET) -> str:
        """Return a fresh credential of ``kind``, refreshing at most once.

        Args:
            kind: Which cycle to run.
            stale: The credential value the failing request was sent with
                (None if it was sent without one). If the store already holds
                a different value, another caller refreshed in the meantime and
                that value is returned without a new exchange.

        Returns:
            The new access token (AUTH) or CSRF token (CSRF).

        Raises:
            ClassifiedError: The exchange failed (shared by every waiter), or
                the refresh material is missing (``AUTH_DENIED`` /
                ``CLIENT_ERROR``, raised without an exchange).
        """
        slot = self._slots[kind]
        if slot.state is RefreshState.REFRESHING:
            waiter: asyncio.Future[str] = asyncio.get_running_loop().create_future()
            slot.waiters.append(waiter)
            logging.debug(
                f"⏳ Waiting on in-flight {kind.value} refresh position={len(slot.waiters)}"
            )
            return await waiter

        current = self.store.get(_CREDENTIAL_FOR[kind])
        if stale is not _UNSET and current is not None and current != stale:
            logging.debug(f"♻️ {kind.value} credential already refreshed, reusing current value")
            return current

        self._require_material(kind)
        slot.state = RefreshState.REFRESHING
        slot.exchanges += 1
        logging.debug(f"🔄 Starting {kind.value} refresh exchange #{slot.exchanges}")
        try:
            token = await self._exchange(kind)
        except asyncio.CancelledError:
            self._settle_cancelled(kind, slot)
            raise
        except ClassifiedError as e:
            self._settle_failure(kind, slot, e)
            raise
        except Exception as e:
            error = classify(e)
            self._settle_failure(kind, slot, error)
            raise error from e
        self._settle_success(kind, slot, token)
        return token

    def _require_material(self, kind: RefreshKind) -> None:
        if kind is RefreshKind.AUTH and self.store.get_refresh() is None:
            raise ClassifiedError(
                "No refresh token available", kind=ErrorKind.AUTH_DENIED, retryable=False
            )
        if kind is RefreshKind.CSRF and not self.client.csrf_refresh_configured:
            raise ClassifiedError(
                "No CSRF refresh endpoint configured", kind=ErrorKind.CLIENT_ERROR, retryable=False
            )

    async def _exchange(self, kind: RefreshKind) -> str:
        if kind is RefreshKind.AUTH:
            result = await self.client.refresh_access(self.store.get_refresh())
            self.store.set_access(result.access_token, expires_at=result.expires_at)
            if result.refresh_token:
                self.store.set_refresh(result.refresh_token)
            return result.access_token
        token = await self.client.refresh_csrf(self.store.get_access())
        self.store.set_csrf(token)
        return token

    @staticmethod
    def _release(slot: RefreshSlot) -> deque[asyncio.Future[str]]:
        slot.state = RefreshState.IDLE
        waiters, slot.waiters = slot.waiters, deque()
        return waiters

    def _settle_success(self, kind: RefreshKind, slot: RefreshSlot, token: str) -> None:
        waiters = self._release(slot)
        for waiter in waiters:
            # Cancelled waiters are skipped.
            if not waiter.done():
                waiter.set_result(token)
        logging.info(f"✅ {kind.value} refresh succeeded released_waiters={len(waiters)}")
        self.hooks.fire(_SUCCESS_EVENT[kind], token)

    def _settle_failure(
        self, kind: RefreshKind, slot: RefreshSlot, error: ClassifiedError
    ) -> None:
        waiters = self._release(slot)
        if kind is RefreshKind.AUTH:
            self.store.clear_all()
        else:
            self.store.set_csrf(None)
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(error)
        log_error(
            f"{kind.value} refresh failed",
            error,
            context={"released_waiters": len(waiters)},
            stats=self.failures,
        )
        self.hooks.fire(_FAILURE_EVENT[kind], error)

    def _settle_cancelled(self, kind: RefreshKind, slot: RefreshSlot) -> None:
        waiters = self._release(slot)
        error = ClassifiedError(
            "Token refresh cancelled", kind=ErrorKind.UNKNOWN, retryable=False
        )
        for waiter in waiters:
            if not waiter.done():
                waiter.set_exception(error)
        logging.warning(
            f"⚠️ {kind.value} refresh cancelled released_waiters={len(waiters)}"
        )
