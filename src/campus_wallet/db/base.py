"""
campus_wallet.db.base

SQLAlchemy declarative base for the portal's local persistence.

Responsibilities:
- Provide a shared DeclarativeBase for the storage tables.
"""

from __future__ import annotations

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass
