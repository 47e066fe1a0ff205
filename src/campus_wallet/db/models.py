"""
campus_wallet.db.models

Persistence schema for the portal's durable key-value storage.

Responsibilities:
- Define `StorageEntry`: one row per persisted key (session token, principal JSON).
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column

from campus_wallet.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(tz=UTC).replace(tzinfo=None)


class StorageEntry(Base):
    __tablename__ = "storage_entries"

    key: Mapped[str] = mapped_column(String(64), primary_key=True)
    # Values are opaque strings; JSON decoding and validation belong to the identity layer.
    value: Mapped[str] = mapped_column(Text, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(nullable=False, default=_utcnow, onupdate=_utcnow)


# --- Module Notes -----------------------------------------------------------
# The table mirrors a browser's localStorage: flat string keys, string values, no
# relations. Namespacing (admin vs user) is expressed in key names, not columns.
