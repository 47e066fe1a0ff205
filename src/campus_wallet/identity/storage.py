"""
campus_wallet.identity.storage

Key-value storage backends for the identity store.

Responsibilities:
- Define the storage contract: batched reads and atomic batched writes of string values.
- Provide the durable backend (SQLAlchemy async, one transaction per write).
- Provide the in-memory backend used for tests and as the fallback when durable storage fails.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from campus_wallet.db.models import StorageEntry


class StorageUnavailableError(Exception):
    pass


class KeyValueStorage(ABC):
    """
    Contract:
    - `read` returns only the keys that exist.
    - `write` applies all `updates` and `removals` together or not at all.
    """

    durable: bool = False

    @abstractmethod
    async def read(self, keys: Iterable[str]) -> dict[str, str]: ...

    @abstractmethod
    async def write(
        self,
        *,
        updates: Mapping[str, str] | None = None,
        removals: Iterable[str] = (),
    ) -> None: ...


class MemoryStorage(KeyValueStorage):
    def __init__(self, initial: Mapping[str, str] | None = None) -> None:
        self._data: dict[str, str] = dict(initial or {})

    async def read(self, keys: Iterable[str]) -> dict[str, str]:
        return {k: self._data[k] for k in keys if k in self._data}

    async def write(
        self,
        *,
        updates: Mapping[str, str] | None = None,
        removals: Iterable[str] = (),
    ) -> None:
        staged = dict(self._data)
        for key in removals:
            staged.pop(key, None)
        staged.update(updates or {})
        self._data = staged

    def dump(self) -> dict[str, str]:
        return dict(self._data)


class SqlKeyValueStorage(KeyValueStorage):
    durable = True

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def read(self, keys: Iterable[str]) -> dict[str, str]:
        wanted = list(keys)
        if not wanted:
            return {}
        try:
            async with self._session_factory() as session:
                rows = await session.execute(
                    select(StorageEntry.key, StorageEntry.value).where(StorageEntry.key.in_(wanted))
                )
                return {key: value for key, value in rows.all()}
        except SQLAlchemyError as e:
            raise StorageUnavailableError(str(e)) from e

    async def write(
        self,
        *,
        updates: Mapping[str, str] | None = None,
        removals: Iterable[str] = (),
    ) -> None:
        updates = dict(updates or {})
        doomed = [k for k in removals if k not in updates]
        try:
            async with self._session_factory() as session, session.begin():
                if doomed:
                    await session.execute(delete(StorageEntry).where(StorageEntry.key.in_(doomed)))
                for key, value in updates.items():
                    await session.merge(StorageEntry(key=key, value=value))
        except SQLAlchemyError as e:
            raise StorageUnavailableError(str(e)) from e


# --- Module Notes -----------------------------------------------------------
# `session.begin()` commits on exit and rolls back on error, which is what makes a
# session commit (token + principal, other namespace removed) all-or-nothing.
