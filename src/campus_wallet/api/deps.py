"""
campus_wallet.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings and DB sessions.
- Encapsulate app.state access patterns (identity store, auth flow, log feed).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from campus_wallet.auth.flow import AuthFlow
from campus_wallet.identity.store import IdentityStore
from campus_wallet.logs.feed import LogFeed
from campus_wallet.settings import Settings


def settings_from_app(request: Request) -> Settings:
    # The app is built with an explicit Settings instance; see `create_app`.
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    async with session_factory() as session:
        yield session


def identity_store_from_app(request: Request) -> IdentityStore:
    # Created once in the app lifespan; one store per portal process.
    return request.app.state.identity_store  # type: ignore[attr-defined]


def auth_flow_from_app(request: Request) -> AuthFlow:
    return request.app.state.auth_flow  # type: ignore[attr-defined]


def log_feed_from_app(request: Request) -> LogFeed:
    return request.app.state.log_feed  # type: ignore[attr-defined]


# --- Module Notes -----------------------------------------------------------
# Everything here is process-wide: the portal plays the part of a single browser, so the
# session and the sign-in flow are shared by all requests.
