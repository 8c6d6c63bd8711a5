"""Hook management for token refresh outcomes."""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable
from enum import Enum
from typing import Any

Hook = Callable[[Any], Any]


class RefreshEvent(str, Enum):
    """Refresh outcomes that callers can subscribe to.

    Values double as the keyword names accepted by the pipeline constructor.
    """

    TOKEN_REFRESH = "on_token_refresh"
    TOKEN_REFRESH_FAILED = "on_token_refresh_failed"
    CSRF_TOKEN_REFRESH = "on_csrf_token_refresh"
    CSRF_TOKEN_REFRESH_FAILED = "on_csrf_token_refresh_failed"


class HookManager:
    """Manages registration and firing of refresh outcome hooks.

    Success hooks receive the new token, failure hooks the ``ClassifiedError``.
    A hook may be a plain callable or a coroutine function; coroutines are
    scheduled fire-and-forget and retained until done so they are not garbage
    collected early. Hook failures are logged and never reach the pipeline.
    """

    def __init__(self) -> None:
        self._hooks: dict[RefreshEvent, list[Hook]] = {event: [] for event in RefreshEvent}
        # Retained background tasks (coroutine hooks) to prevent premature GC.
        self._hook_tasks: set[asyncio.Task[Any]] = set()

    def register(self, event: RefreshEvent | str, hook: Hook) -> None:
        """Register ``hook`` for ``event``; hooks are additive."""
        self._hooks[RefreshEvent(event)].append(hook)

    def hooks_for(self, event: RefreshEvent) -> list[Hook]:
        return list(self._hooks[event])

    def fire(self, event: RefreshEvent, payload: Any) -> None:
        """Invoke every hook registered for ``event`` with ``payload``."""
        for hook in self.hooks_for(event):
            try:
                result = hook(payload)
            except Exception as e:  # noqa: BLE001
                logging.warning(
                    f"⚠️ Refresh hook error event={event.value} type={type(e).__name__} error={str(e)}"
                )
                continue
            if inspect.isawaitable(result):
                self._create_retained_task(result, category=event.value)

    def _create_retained_task(self, awaitable: Any, *, category: str) -> asyncio.Task[Any]:
        task: asyncio.Task[Any] = asyncio.ensure_future(awaitable)
        self._hook_tasks.add(task)

        def _done(t: asyncio.Task[Any]) -> None:
            self._hook_tasks.discard(t)
            if t.cancelled():
                return
            exc = t.exception()
            if exc:
                logging.warning(
                    f"⚠️ Retained hook task error category={category} error={str(exc)} type={type(exc).__name__}"
                )

        task.add_done_callback(_done)
        return task

    @property
    def pending(self) -> int:
        return len(self._hook_tasks)

    async def drain(self) -> None:
        """Wait for every scheduled coroutine hook to finish."""
        while self._hook_tasks:
            await asyncio.gather(*list(self._hook_tasks), return_exceptions=True)
