"""
tests.conftest

Shared fixtures: settings, a scripted fake wallet backend, and flow/store wiring.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from typing import Any

import httpx
import pytest
import pytest_asyncio

from campus_wallet.auth.cooldown import ResendCooldown
from campus_wallet.auth.flow import AuthFlow
from campus_wallet.backend.client import WalletApiClient, build_http_client
from campus_wallet.identity.storage import MemoryStorage
from campus_wallet.identity.store import IdentityStore
from campus_wallet.settings import Settings

Reply = tuple[int, Any] | Callable[[httpx.Request], httpx.Response]


class FakeBackend:
    """
    Scripted stand-in for the wallet REST backend, served through `httpx.MockTransport`.
    Unscripted routes answer 404.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Reply] = {}
        self.calls: list[httpx.Request] = []

    def on(self, method: str, path: str, reply: Reply) -> None:
        self.routes[(method, "/api" + path)] = reply

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls.append(request)
        reply = self.routes.get((request.method, request.url.path))
        if reply is None:
            return httpx.Response(404, json={"error": "not found"})
        if callable(reply):
            return reply(request)
        status, body = reply
        return httpx.Response(status, json=body)

    def calls_to(self, path: str) -> list[httpx.Request]:
        return [c for c in self.calls if c.url.path == "/api" + path]

    def json_of(self, path: str, index: int = -1) -> dict[str, Any]:
        return json.loads(self.calls_to(path)[index].content)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


async def frozen_sleep(_: float) -> None:
    # Never returns; tests advance cooldowns with explicit ticks.
    await asyncio.Event().wait()


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        backend_base_url="http://backend.test/api",
        storage_url=f"sqlite+aiosqlite:///{tmp_path / 'portal.db'}",
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest_asyncio.fixture
async def http(settings: Settings, backend: FakeBackend) -> AsyncIterator[httpx.AsyncClient]:
    client = build_http_client(settings, transport=backend.transport)
    try:
        yield client
    finally:
        await client.aclose()


@pytest.fixture
def api_client(settings: Settings, http: httpx.AsyncClient) -> WalletApiClient:
    return WalletApiClient(settings=settings, http=http)


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def store(storage: MemoryStorage) -> IdentityStore:
    return IdentityStore(storage)


@pytest.fixture
def cooldown() -> ResendCooldown:
    return ResendCooldown(60, sleep=frozen_sleep)


@pytest_asyncio.fixture
async def flow(
    api_client: WalletApiClient,
    store: IdentityStore,
    settings: Settings,
    cooldown: ResendCooldown,
) -> AsyncIterator[AuthFlow]:
    await store.restore()
    flow = AuthFlow(client=api_client, store=store, settings=settings, cooldown=cooldown)
    try:
        yield flow
    finally:
        flow.dispose()
