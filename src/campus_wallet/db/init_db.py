"""
campus_wallet.db.init_db

Storage bootstrap.

Responsibilities:
- Create the storage table if it does not exist yet.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncEngine

from campus_wallet.db.base import Base


async def init_db(engine: AsyncEngine) -> None:
    """
    Create tables if they don't exist. The schema is a single key-value table, so
    there is no migration history to manage.
    """

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
