"""
campus_wallet.db.session

Async SQLAlchemy engine + session factory helpers.

Responsibilities:
- Create the async engine for the session storage URL.
- Create the async sessionmaker used by the key-value storage backend.
"""

from __future__ import annotations

from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from campus_wallet.settings import Settings


def _is_memory_sqlite(url: str) -> bool:
    parsed = make_url(url)
    return parsed.get_backend_name() == "sqlite" and parsed.database in (None, "", ":memory:")


def create_engine(settings: Settings) -> AsyncEngine:
    if _is_memory_sqlite(settings.storage_url):
        # Each new connection would otherwise get its own empty database.
        return create_async_engine(
            settings.storage_url,
            poolclass=StaticPool,
            connect_args={"check_same_thread": False},
        )
    return create_async_engine(settings.storage_url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    # Storage rows are read as plain strings right after commit.
    return async_sessionmaker(bind=engine, expire_on_commit=False, autoflush=False)


# --- Module Notes -----------------------------------------------------------
# Only the identity storage backend (`identity.storage.SqlKeyValueStorage`) and the
# readiness probe open sessions; every storage write is one transaction.
