"""
Configuration constants for the tokenpipe request pipeline

This module contains the tunable defaults used throughout the package.
Each constant can be overridden by setting an environment variable with the same name.
"""

import os


def _get_env_int(name: str, default: int) -> int:
    """Retrieve an integer value from an environment variable.

    Attempts to parse the environment variable as an integer. If the variable
    is not set or cannot be parsed, prints a warning and returns the default value.

    Args:
        name: The name of the environment variable to read.
        default: The default integer value to return if parsing fails.

    Returns:
        The parsed integer value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return int(value)
        except ValueError:
            print(
                f"Warning: Invalid integer value for {name}='{value}', using default {default}"
            )
    return default


def _get_env_float(name: str, default: float) -> float:
    """Retrieve a float value from an environment variable.

    Args:
        name: The name of the environment variable to read.
        default: The default float value to return if parsing fails.

    Returns:
        The parsed float value from the environment, or the default if unavailable.
    """
    value = os.getenv(name)
    if value is not None:
        try:
            return float(value)
        except ValueError:
            print(
                f"Warning: Invalid float value for {name}='{value}', using default {default}"
            )
    return default


# Transport timeouts
HTTP_TIMEOUT_SECONDS = _get_env_float(
    "HTTP_TIMEOUT_SECONDS", 30.0
)  # Default per-request timeout
REFRESH_TIMEOUT_SECONDS = _get_env_float(
    "REFRESH_TIMEOUT_SECONDS", 30.0
)  # Timeout for the token and CSRF refresh exchanges

# Expiry hints
TOKEN_EXPIRY_SAFETY_BUFFER_SECONDS = _get_env_int(
    "TOKEN_EXPIRY_SAFETY_BUFFER_SECONDS", 30
)  # Subtracted from expires_in when recording an expiry hint

# Caller-level retry policy (Network / Timeout / ServerTransient only)
CALLER_RETRY_MAX_ATTEMPTS = _get_env_int(
    "CALLER_RETRY_MAX_ATTEMPTS", 3
)  # Total attempts including the first one
CALLER_RETRY_MAX_WAIT_SECONDS = _get_env_float(
    "CALLER_RETRY_MAX_WAIT_SECONDS", 30.0
)  # Upper bound for the exponential backoff between attempts

# Per-pipeline failure stats
FAILURE_WINDOW_SECONDS = _get_env_float(
    "FAILURE_WINDOW_SECONDS", 3600.0
)  # Trailing window the failure counts cover
FAILURE_HISTORY_PER_KIND = _get_env_int(
    "FAILURE_HISTORY_PER_KIND", 1000
)  # Timestamps kept per failure kind
FAILURE_ALERT_THRESHOLD = _get_env_int(
    "FAILURE_ALERT_THRESHOLD", 10
)  # Alerting kinds logged as CRITICAL once they exceed this count in the window

# Headers
DEFAULT_CSRF_HEADER = os.getenv("DEFAULT_CSRF_HEADER", "X-CSRF-Token")
STATE_CHANGING_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})
