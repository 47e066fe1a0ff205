"""
campus_wallet.api.app

FastAPI app factory for the campus wallet portal.

Responsibilities:
- Build the FastAPI application and register routers/middleware/exception handlers.
- Initialize and dispose shared infrastructure (storage engine, backend HTTP client).
- Create the process-wide IdentityStore and AuthFlow and start session restoration.
"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI
from sqlalchemy.exc import SQLAlchemyError

from campus_wallet.api.routers import pages
from campus_wallet.api.routers.auth import router as auth_router
from campus_wallet.api.routers.health import router as health_router
from campus_wallet.api.routers.logs import router as logs_router
from campus_wallet.api.routers.session import router as session_router
from campus_wallet.auth.flow import AuthFlow
from campus_wallet.backend.client import WalletApiClient, build_http_client
from campus_wallet.db.init_db import init_db
from campus_wallet.db.session import create_engine, create_sessionmaker
from campus_wallet.guards.deps import RouteGuardInterrupt, route_guard_interrupt_handler
from campus_wallet.identity.storage import SqlKeyValueStorage
from campus_wallet.identity.store import IdentityStore
from campus_wallet.logs.feed import LogFeed
from campus_wallet.observability.logging import configure_logging, get_logger
from campus_wallet.observability.middleware import RequestContextMiddleware
from campus_wallet.settings import Settings

log = get_logger(__name__)


def create_app(
    *,
    settings: Settings,
    backend_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        try:
            await init_db(engine)
        except SQLAlchemyError as e:
            # The identity store falls back to memory when it cannot read or write.
            log.warning("storage.init_failed", error=str(e))

        store = IdentityStore(SqlKeyValueStorage(app.state.sessionmaker))
        http = build_http_client(settings, transport=backend_transport)
        client = WalletApiClient(settings=settings, http=http)
        app.state.identity_store = store
        app.state.http = http
        app.state.api_client = client
        app.state.auth_flow = AuthFlow(client=client, store=store, settings=settings)
        app.state.log_feed = LogFeed(client=client)
        # Guards answer "loading" until this finishes.
        app.state.restore_task = asyncio.create_task(store.restore())

        try:
            yield
        finally:
            app.state.auth_flow.dispose()
            restore_task: asyncio.Task = app.state.restore_task
            if not restore_task.done():
                restore_task.cancel()
            await http.aclose()
            # Dispose the engine to close pools/FDs gracefully.
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Campus Wallet Portal",
        version="0.1.0",
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.add_exception_handler(RouteGuardInterrupt, route_guard_interrupt_handler)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(session_router)
    app.include_router(logs_router)
    app.include_router(pages.build_router(settings))

    return app


# --- Module Notes -----------------------------------------------------------
# `backend_transport` lets tests plug an `httpx.MockTransport` in place of the network.
