"""
campus_wallet.identity.store

Process-wide source of truth for "who is signed in, and as what".

Responsibilities:
- Restore a session from persisted storage, purging corrupted records.
- Commit a new session into the namespace matching the authoritative role.
- Clear both namespaces on logout; patch the principal profile in place.
- Keep storage and memory consistent: memory changes only after storage accepted the write.
- Fall back to memory-only storage (with a warning) when durable storage fails.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import Callable, Mapping
from typing import Any

from campus_wallet.identity.models import (
    ALL_STORAGE_KEYS,
    AuthoritativeRole,
    IdentitySnapshot,
    Principal,
    Session,
    StorageNamespace,
)
from campus_wallet.identity.storage import KeyValueStorage, MemoryStorage, StorageUnavailableError
from campus_wallet.observability.logging import get_logger

log = get_logger(__name__)

STORAGE_FALLBACK_WARNING = (
    "Session storage is unavailable. You will stay signed in on this page, "
    "but you will need to sign in again after a restart."
)


class NoActiveSessionError(Exception):
    pass


class IdentityStore:
    def __init__(
        self,
        storage: KeyValueStorage,
        *,
        fallback_factory: Callable[[], KeyValueStorage] = MemoryStorage,
    ) -> None:
        self._storage = storage
        self._fallback_factory = fallback_factory
        self._session: Session | None = None
        self._restored = False
        self._lock = asyncio.Lock()
        self.storage_warning: str | None = None

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def restored(self) -> bool:
        return self._restored

    @property
    def is_logged_in(self) -> bool:
        return self._session is not None

    @property
    def degraded(self) -> bool:
        return self.storage_warning is not None

    def snapshot(self) -> IdentitySnapshot:
        return IdentitySnapshot(restored=self._restored, session=self._session)

    async def restore(self) -> Session | None:
        """
        Rebuild the session from storage: admin record first, then user record.

        Corrupted records are purged and skipped; the caller only ever sees a session or None.
        """

        async with self._lock:
            session: Session | None = None
            for namespace in (StorageNamespace.admin, StorageNamespace.user):
                session = await self._load(namespace)
                if session is not None:
                    break

            self._session = session
            self._restored = True
            log.info(
                "identity.restored",
                logged_in=session is not None,
                namespace=session.namespace.name if session else None,
            )
            return session

    async def commit(
        self,
        principal_data: Mapping[str, Any],
        token: str,
        *,
        role: AuthoritativeRole,
    ) -> Session:
        """
        Persist a new session, replacing whatever was there (both namespaces).
        """

        payload = {k: v for k, v in principal_data.items() if k != "token"}
        if role.role_tag is not None:
            payload["role"] = role.role_tag.value
        # Validate before touching storage; a bad payload must not half-replace a session.
        session = Session(principal=Principal.from_payload(payload, kind=role.kind), token=token)
        namespace = session.namespace

        async with self._lock:
            await self._write(
                updates={namespace.token_key: token, namespace.data_key: json.dumps(payload)},
                removals=namespace.other.keys,
            )
            self._session = session
            self._restored = True

        log.info("identity.committed", namespace=namespace.name, role_tag=role.role_tag)
        return session

    async def clear(self) -> None:
        async with self._lock:
            await self._write(removals=ALL_STORAGE_KEYS)
            self._session = None
            self._restored = True
        log.info("identity.cleared")

    async def patch(self, changes: Mapping[str, Any]) -> Session:
        """
        Merge `changes` into the current principal profile without issuing a new token.
        """

        async with self._lock:
            current = self._session
            if current is None:
                raise NoActiveSessionError("no active session to patch")

            payload = {**current.principal.profile, **{k: v for k, v in changes.items() if k != "token"}}
            if current.principal.role_tag is not None:
                # Department is fixed by the credential response, not by profile edits.
                payload["role"] = current.principal.role_tag.value
            principal = Principal.from_payload(payload, kind=current.principal.kind)

            namespace = current.namespace
            await self._write(updates={namespace.data_key: json.dumps(payload)})
            self._session = Session(principal=principal, token=current.token)
            return self._session

    async def _load(self, namespace: StorageNamespace) -> Session | None:
        try:
            raw = await self._storage.read(namespace.keys)
        except StorageUnavailableError as e:
            await self._degrade(e)
            raw = await self._storage.read(namespace.keys)

        token = raw.get(namespace.token_key)
        blob = raw.get(namespace.data_key)
        if token is None and blob is None:
            return None

        try:
            if not token:
                raise ValueError("missing token")
            if blob is None:
                raise ValueError("missing principal data")
            payload = json.loads(blob)
            return Session(principal=Principal.from_payload(payload, kind=namespace.kind), token=token)
        except (ValueError, TypeError) as e:
            log.warning("identity.corrupt_record_purged", namespace=namespace.name, error=str(e))
            await self._purge(namespace)
            return None

    async def _purge(self, namespace: StorageNamespace) -> None:
        try:
            await self._storage.write(removals=namespace.keys)
        except StorageUnavailableError as e:
            await self._degrade(e)

    async def _write(
        self,
        *,
        updates: Mapping[str, str] | None = None,
        removals: tuple[str, ...] = (),
    ) -> None:
        try:
            await self._storage.write(updates=updates, removals=removals)
        except StorageUnavailableError as e:
            await self._degrade(e)
            await self._storage.write(updates=updates, removals=removals)

    async def _degrade(self, error: Exception) -> None:
        if self.degraded:
            return
        log.warning("identity.storage_unavailable", error=str(error))
        self.storage_warning = STORAGE_FALLBACK_WARNING
        fallback = self._fallback_factory()
        # The fallback starts with the live session so later writes and restores see a whole record.
        current = self._session
        if current is not None:
            namespace = current.namespace
            await fallback.write(
                updates={
                    namespace.token_key: current.token,
                    namespace.data_key: json.dumps(dict(current.principal.profile)),
                }
            )
        self._storage = fallback


# --- Module Notes -----------------------------------------------------------
# There is no cross-process lock on the storage; readers validate everything they load
# (`Principal.from_payload`) instead of trusting what another writer left behind.
