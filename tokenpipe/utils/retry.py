"""Caller-level retry for transient request failures using Tenacity.

The pipeline itself never retries Network / Timeout / ServerTransient
failures; callers that want backoff wrap their call in ``retry_transient``.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TypeVar

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from ..constants import CALLER_RETRY_MAX_ATTEMPTS, CALLER_RETRY_MAX_WAIT_SECONDS
from ..errors.classifier import is_retryable

T = TypeVar("T")


class RetryExhaustedError(Exception):
    """Exception raised when all retry attempts have been exhausted."""

    def __init__(self, message: str, attempts: int, final_exception: BaseException | None = None) -> None:
        super().__init__(message)
        self.attempts = attempts
        self.final_exception = final_exception


async def retry_transient(
    operation: Callable[[], Awaitable[T]],
    *,
    max_attempts: int = CALLER_RETRY_MAX_ATTEMPTS,
    wait: wait_base | None = None,
    context: str = "request",
) -> T:
    """Run ``operation``, retrying while its failure is transient.

    Args:
        operation: Zero-argument coroutine function, e.g.
            ``lambda: pipeline.get("/items")``.
        max_attempts: Total attempts including the first one.
        wait: Tenacity wait strategy; exponential backoff by default.
        context: Label used in log messages.

    Returns:
        The operation's result.

    Raises:
        RetryExhaustedError: If every attempt failed with a retryable error.
        Exception: Any non-retryable failure, unchanged, on first occurrence.
    """

    def before_sleep(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logging.info(
            f"🔁 Retrying {context} (attempt {retry_state.attempt_number + 1}/{max_attempts}) after {type(exc).__name__}"
        )

    retrying = AsyncRetrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait if wait is not None else wait_exponential(multiplier=1, max=CALLER_RETRY_MAX_WAIT_SECONDS),
        retry=retry_if_exception(is_retryable),
        before_sleep=before_sleep,
        reraise=True,
    )

    try:
        return await retrying(operation)
    except Exception as e:
        if not is_retryable(e):
            raise
        raise RetryExhaustedError(
            f"{context} failed after {max_attempts} attempts",
            attempts=max_attempts,
            final_exception=e,
        ) from e
