r"""
Logging configuration module for tokenpipe.

Console output goes through colorlog with credential redaction. Surfaced
failures are written as one structured line each and counted in a
``FailureStats`` owned by the pipeline that produced them.
"""

import logging
import os
import re
import sys
import time
from collections import Counter, deque
from collections.abc import Callable
from typing import Any

import colorlog

from .constants import (
    FAILURE_ALERT_THRESHOLD,
    FAILURE_HISTORY_PER_KIND,
    FAILURE_WINDOW_SECONDS,
)

_REDACTIONS = (
    (re.compile(r"(Bearer\s+)[^\s'\",}]+", re.IGNORECASE), r"\1***"),
    (
        re.compile(
            r"((?:access_token|refresh_token|csrf_token)['\"]?\s*[:=]\s*['\"]?)[^\s'\",}]+",
            re.IGNORECASE,
        ),
        r"\1***",
    ),
)

# Failure kinds whose bursts point at an outage or a broken session. Client
# errors such as 404/422 are the caller's business and never alert.
ALERT_KINDS = frozenset({"network", "timeout", "server_transient", "auth_denied"})

HANDLER_NAME = "tokenpipe-console"


def redact(text: str) -> str:
    """Mask bearer tokens and token fields in ``text``."""
    for pattern, repl in _REDACTIONS:
        text = pattern.sub(repl, text)
    return text


class TokenRedactionFilter(logging.Filter):
    """Filter that masks credentials in log records before they are emitted."""

    def filter(self, record):
        message = record.getMessage()
        cleaned = redact(message)
        if cleaned != message:
            record.msg = cleaned
            record.args = ()
        return True


class FailureStats:
    """Counts surfaced failures per kind over a trailing time window.

    Each pipeline owns one instance, so counts from independent pipelines
    never mix. All access happens on the pipeline's event loop.
    """

    def __init__(
        self,
        *,
        window: float = FAILURE_WINDOW_SECONDS,
        history: int = FAILURE_HISTORY_PER_KIND,
        alert_threshold: int = FAILURE_ALERT_THRESHOLD,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.window = window
        self.history = history
        self.alert_threshold = alert_threshold
        self._clock = clock
        self._seen: dict[str, deque[float]] = {}
        self._last_message: dict[str, str] = {}
        self.totals: Counter[str] = Counter()

    def __bool__(self) -> bool:
        return bool(self.totals)

    def _prune(self, kind: str) -> deque[float]:
        seen = self._seen.setdefault(kind, deque(maxlen=self.history))
        cutoff = self._clock() - self.window
        while seen and seen[0] < cutoff:
            seen.popleft()
        return seen

    def record(self, kind: str, message: str) -> int:
        """Count one failure of ``kind`` and return its count in the window."""
        seen = self._prune(kind)
        seen.append(self._clock())
        self._last_message[kind] = message
        self.totals[kind] += 1
        return len(seen)

    def recent(self, kind: str) -> int:
        return len(self._prune(kind)) if kind in self._seen else 0

    def crossed_threshold(self, kind: str, recent: int) -> bool:
        """True exactly when an alerting kind first exceeds the threshold."""
        return kind in ALERT_KINDS and recent == self.alert_threshold + 1

    def snapshot(self) -> dict[str, dict[str, Any]]:
        return {
            kind: {
                "total": total,
                "recent": self.recent(kind),
                "last_message": self._last_message.get(kind),
            }
            for kind, total in self.totals.most_common()
        }

    def log_report(self) -> None:
        snapshot = self.snapshot()
        if not snapshot:
            return
        window_min = int(self.window // 60)
        lines = [
            f"{kind}={stats['total']} (last {window_min}m: {stats['recent']})"
            for kind, stats in snapshot.items()
        ]
        logging.info(redact(f"📊 Request failures: {', '.join(lines)}"))

    def reset(self) -> None:
        self._seen.clear()
        self._last_message.clear()
        self.totals.clear()


def log_structured_error(
    error_type: str,
    message: str,
    exception: BaseException | None = None,
    context: dict[str, Any] | None = None,
    level: int = logging.ERROR,
    stats: FailureStats | None = None,
) -> None:
    """Log one failure as a single structured, redacted line.

    Args:
        error_type: Failure bucket, usually an ``ErrorKind`` value.
        message: Descriptive error message.
        exception: The exception that occurred, if any.
        context: Extra ``key=value`` pairs appended to the line.
        level: Logging level for the line.
        stats: Counter to record the failure in. When an alerting kind
            first exceeds its threshold a CRITICAL line follows.
    """
    parts = [f"[{error_type.upper()}] {message}"]
    if exception is not None:
        parts.append(f"Exception: {type(exception).__name__}: {exception}")
    if context:
        parts.append("Context: " + " ".join(f"{k}={v}" for k, v in context.items()))
    logging.log(level, redact(" | ".join(parts)))

    if stats is None:
        return
    recent = stats.record(error_type, message)
    if stats.crossed_threshold(error_type, recent):
        logging.critical(
            f"🚨 {error_type} failures above threshold: {recent} in the last {int(stats.window // 60)}m"
        )


class LoggerConfigurator:
    """Installs the colored console handler on the root logger.

    Calling ``configure()`` again replaces the handler it installed earlier
    instead of stacking a second one.
    """

    def __init__(self, stream=None):
        self.stream = stream or sys.stderr

    @staticmethod
    def level_from_env() -> int:
        """DEBUG when the ``DEBUG`` env var is true/1/yes, INFO otherwise."""
        debug_env = os.environ.get("DEBUG", "").lower()
        return logging.DEBUG if debug_env in ("true", "1", "yes") else logging.INFO

    def configure(self, level: int | None = None) -> colorlog.ColoredFormatter:
        formatter = colorlog.ColoredFormatter(
            "%(asctime)s %(log_color)s%(levelname)-8s%(reset)s %(message_log_color)s%(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "magenta",
            },
            secondary_log_colors={"message": {"ERROR": "red", "CRITICAL": "magenta"}},
            reset=True,
        )
        handler = logging.StreamHandler(self.stream)
        handler.name = HANDLER_NAME
        handler.setFormatter(formatter)

        root_logger = logging.getLogger()
        for existing in list(root_logger.handlers):
            if existing.name == HANDLER_NAME:
                root_logger.removeHandler(existing)
        root_logger.addHandler(handler)
        root_logger.setLevel(level if level is not None else self.level_from_env())

        # Credentials must not leak through handlers installed by the application
        for h in root_logger.handlers:
            if not any(isinstance(f, TokenRedactionFilter) for f in h.filters):
                h.addFilter(TokenRedactionFilter())

        # aiohttp access/client debug output is noisy
        logging.getLogger("aiohttp").setLevel(logging.WARNING)
        return formatter
