"""Utility package: helpers and caller-level retry.

Exposed functions:
    format_duration: Formats time durations into human-readable strings.
    resolve_url: Joins a request target onto the configured base URL.
    retry_transient: Retries an operation while its failure is transient.
"""

from .helpers import format_duration, header_value, resolve_url
from .retry import RetryExhaustedError, retry_transient

__all__ = [
    "format_duration",
    "header_value",
    "resolve_url",
    "RetryExhaustedError",
    "retry_transient",
]
