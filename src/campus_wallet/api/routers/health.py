"""
campus_wallet.api.routers.health

Health and readiness endpoints.

Responsibilities:
- Provide liveness probe (`/healthz`).
- Provide readiness probe (`/readyz`): storage reachable and session restoration finished.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from campus_wallet.api.deps import db_session, identity_store_from_app
from campus_wallet.identity.store import IdentityStore

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    # Liveness: process is up and serving HTTP.
    return {"status": "ok"}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    store: IdentityStore = Depends(identity_store_from_app),
) -> dict[str, Any]:
    try:
        await session.execute(text("SELECT 1"))
        storage = "durable"
    except SQLAlchemyError:
        # The portal keeps serving on the in-memory fallback.
        storage = "unavailable"
    if store.degraded:
        storage = "memory"
    return {
        "status": "ready" if store.restored else "restoring",
        "storage": storage,
    }


# --- Module Notes -----------------------------------------------------------
# Storage failure does not fail readiness: sessions fall back to memory with a warning.
