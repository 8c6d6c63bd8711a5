"""General utility helper functions."""

from __future__ import annotations

from collections.abc import Mapping

__all__ = ["format_duration", "resolve_url", "header_value"]


def format_duration(total_seconds: int | float | None) -> str:
    """Return a human-friendly Hh Mm Ss string for a duration in seconds.

    Examples:
      65 -> "1m 5s"
      3605 -> "1h 0m 5s"
      59 -> "59s"
    """
    if total_seconds is None:
        return "unknown"
    seconds = int(total_seconds)
    if seconds < 60:
        return f"{seconds}s"
    minutes, sec = divmod(seconds, 60)
    if minutes < 60:
        return f"{minutes}m {sec}s"
    hours, minutes = divmod(minutes, 60)
    if hours < 24:
        return f"{hours}h {minutes}m {sec}s"
    days, hours = divmod(hours, 24)
    return f"{days}d {hours}h {minutes}m {sec}s"


def resolve_url(base_url: str | None, target: str) -> str:
    """Join ``target`` onto ``base_url`` unless it is already absolute."""
    if target.startswith(("http://", "https://")) or not base_url:
        return target
    return f"{base_url.rstrip('/')}/{target.lstrip('/')}"


def header_value(headers: Mapping[str, str], name: str) -> str | None:
    """Case-insensitive header lookup."""
    lowered = name.lower()
    for key, value in headers.items():
        if key.lower() == lowered:
            return value
    return None
