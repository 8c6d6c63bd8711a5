from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..logging_config import log_structured_error
from .internal import ClassifiedError, InternalError, TransportError

if TYPE_CHECKING:
    from ..logging_config import FailureStats


def error_type_of(error: BaseException) -> str:
    """Return the failure bucket for ``error``."""
    if isinstance(error, ClassifiedError):
        return error.kind.value
    if isinstance(error, TransportError):
        return "transport"
    if isinstance(error, TimeoutError | ConnectionError):
        return "network"
    if isinstance(error, InternalError):
        return "internal"
    return "unknown"


def log_error(
    message: str,
    error: BaseException,
    context: dict = None,
    stats: FailureStats | None = None,
) -> None:
    """Logs an error message with the associated exception details.

    Retryable classified failures are logged as warnings (the caller may still
    recover); everything else is logged as an error.

    Args:
        message: A descriptive message about the error context.
        error: The exception instance to be logged.
        context: Optional additional context data for debugging.
        stats: The owning pipeline's failure counter, if any.
    """
    level = logging.ERROR
    if isinstance(error, ClassifiedError) and error.retryable:
        level = logging.WARNING
    log_structured_error(
        error_type=error_type_of(error),
        message=f"{message}: {str(error)}",
        exception=error,
        context=context,
        level=level,
        stats=stats,
    )
