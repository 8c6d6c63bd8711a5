"""In-memory credential store."""

from __future__ import annotations

import logging
from datetime import datetime

from .types import Credential, CredentialKind


class CredentialStore:
    """Holds the current access, refresh and CSRF tokens.

    At most one value per kind; a setter replaces the previous value and keeps
    no history. Nothing here suspends or raises, so reads and writes are
    atomic with respect to other asyncio tasks. Durable persistence, if any, is
    the caller's job (push in via setters, read back via getters).
    """

    def __init__(self) -> None:
        self._credentials: dict[CredentialKind, Credential | None] = {
            kind: None for kind in CredentialKind
        }

    def _set(
        self, kind: CredentialKind, token: str | None, expires_at: datetime | None
    ) -> None:
        self._credentials[kind] = (
            Credential(token, expires_at) if token else None
        )

    def set_access(self, token: str | None, *, expires_at: datetime | None = None) -> None:
        self._set(CredentialKind.ACCESS, token, expires_at)

    def set_refresh(self, token: str | None, *, expires_at: datetime | None = None) -> None:
        self._set(CredentialKind.REFRESH, token, expires_at)

    def set_csrf(self, token: str | None, *, expires_at: datetime | None = None) -> None:
        self._set(CredentialKind.CSRF, token, expires_at)

    def get_credential(self, kind: CredentialKind) -> Credential | None:
        return self._credentials[kind]

    def get(self, kind: CredentialKind) -> str | None:
        credential = self._credentials[kind]
        return credential.value if credential else None

    def get_access(self) -> str | None:
        return self.get(CredentialKind.ACCESS)

    def get_refresh(self) -> str | None:
        return self.get(CredentialKind.REFRESH)

    def get_csrf(self) -> str | None:
        return self.get(CredentialKind.CSRF)

    def clear_auth(self) -> None:
        """Drop the access and refresh tokens, keep the CSRF token."""
        self._credentials[CredentialKind.ACCESS] = None
        self._credentials[CredentialKind.REFRESH] = None
        logging.debug("🗑️ Cleared access and refresh tokens")

    def clear_all(self) -> None:
        """Drop every credential in one step (logout, failed auth refresh)."""
        self._credentials = {kind: None for kind in CredentialKind}
        logging.debug("🗑️ Cleared all credentials")
