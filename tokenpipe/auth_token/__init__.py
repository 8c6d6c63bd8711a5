"""Credential storage and single-flight refresh of access and CSRF tokens."""

from .client import RefreshClient, TokenResult
from .coordinator import RefreshCoordinator
from .hook_manager import HookManager, RefreshEvent
from .store import CredentialStore
from .types import Credential, CredentialKind, RefreshKind, RefreshState

__all__ = [
    "Credential",
    "CredentialKind",
    "CredentialStore",
    "HookManager",
    "RefreshClient",
    "RefreshCoordinator",
    "RefreshEvent",
    "RefreshKind",
    "RefreshState",
    "TokenResult",
]
