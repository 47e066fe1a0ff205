"""
campus_wallet.identity

Identity/session package.

Responsibilities:
- Principal, Session and RoleTag models.
- Storage backends and the process-wide IdentityStore.
"""

from campus_wallet.identity.models import (
    AuthoritativeRole,
    IdentitySnapshot,
    Principal,
    PrincipalKind,
    RoleTag,
    Session,
    StorageNamespace,
)
from campus_wallet.identity.storage import (
    KeyValueStorage,
    MemoryStorage,
    SqlKeyValueStorage,
    StorageUnavailableError,
)
from campus_wallet.identity.store import IdentityStore, NoActiveSessionError

__all__ = [
    "AuthoritativeRole",
    "IdentitySnapshot",
    "IdentityStore",
    "KeyValueStorage",
    "MemoryStorage",
    "NoActiveSessionError",
    "Principal",
    "PrincipalKind",
    "RoleTag",
    "Session",
    "SqlKeyValueStorage",
    "StorageNamespace",
    "StorageUnavailableError",
]
