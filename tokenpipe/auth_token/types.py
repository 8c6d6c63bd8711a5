"""Shared types for the auth_token package."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from enum import Enum


class CredentialKind(Enum):
    """Kinds of credential held by the store.

    Attributes:
        ACCESS: Bearer access token attached to every request.
        REFRESH: Token exchanged for a new access token.
        CSRF: Token attached to state-changing requests.
    """

    ACCESS = "access"
    REFRESH = "refresh"
    CSRF = "csrf"


class RefreshKind(Enum):
    """Independent refresh cycles run by the coordinator."""

    AUTH = "auth"
    CSRF = "csrf"


class RefreshState(Enum):
    """State of one refresh cycle.

    Attributes:
        IDLE: No exchange in flight; the next caller starts one.
        REFRESHING: An exchange is in flight; callers queue as waiters.
    """

    IDLE = "idle"
    REFRESHING = "refreshing"


@dataclass(frozen=True)
class Credential:
    """A single live credential value with an optional expiry hint."""

    value: str
    expires_at: datetime | None = None

    def remaining_seconds(self) -> float | None:
        if self.expires_at is None:
            return None
        return (self.expires_at - datetime.now(UTC)).total_seconds()
