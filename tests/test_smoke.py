"""
tests.test_smoke

End-to-end checks through the FastAPI app with a scripted backend.

Responsibilities:
- Ensure the app starts (lifespan), restores the session and serves health probes.
- Drive sign-in, guarded pages, the log feed and logout over HTTP.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
import pytest
from fastapi import FastAPI

from campus_wallet.api.app import create_app
from campus_wallet.settings import Settings


@asynccontextmanager
async def running(settings: Settings, backend) -> AsyncIterator[tuple[FastAPI, httpx.AsyncClient]]:
    app = create_app(settings=settings, backend_transport=backend.transport)
    # httpx ASGITransport does not run the lifespan; drive it explicitly.
    async with app.router.lifespan_context(app):
        await app.state.restore_task
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://portal") as client:
            yield app, client


async def _sign_in(client: httpx.AsyncClient, email: str, pin: str = "445566") -> dict:
    r = await client.post("/v1/auth/email", json={"email": email})
    assert r.json()["step"] == "pin"
    r = await client.post("/v1/auth/pin", json={"value": pin})
    return r.json()


@pytest.mark.asyncio
async def test_health_endpoints(settings: Settings, backend) -> None:
    async with running(settings, backend) as (_, client):
        r = await client.get("/healthz")
        assert r.status_code == 200
        assert r.json()["status"] == "ok"

        r = await client.get("/readyz")
        assert r.status_code == 200
        assert r.json() == {"status": "ready", "storage": "durable"}


@pytest.mark.asyncio
async def test_guarded_page_before_sign_in_redirects_to_login(settings: Settings, backend) -> None:
    async with running(settings, backend) as (_, client):
        r = await client.get("/user-dashboard")

        assert r.status_code == 303
        assert r.headers["location"] == "/login"

        r = await client.get("/login")
        assert r.status_code == 200
        assert r.json()["flow"]["step"] == "email"


@pytest.mark.asyncio
async def test_student_sign_in_reaches_dashboard(settings: Settings, backend) -> None:
    backend.on("POST", "/login", (200, {"token": "t1", "userId": "u1"}))

    async with running(settings, backend) as (_, client):
        view = await _sign_in(client, "student01@nu.edu")

        assert view["step"] == "success"
        assert view["redirect_to"] == "/user-dashboard"
        assert view["principal_kind"] == "user"
        assert "445566" not in str(view)

        r = await client.get("/user-dashboard")
        assert r.status_code == 200
        assert r.json()["principal"]["is_active"] is True

        r = await client.get("/login")
        assert r.status_code == 303
        assert r.headers["location"] == "/user-dashboard"

        r = await client.get("/treasury-dashboard")
        assert r.status_code == 303
        assert r.headers["location"] == "/user-dashboard"


@pytest.mark.asyncio
async def test_session_survives_restart(settings: Settings, backend) -> None:
    backend.on("POST", "/login", (200, {"token": "t9", "role": "accounting", "adminId": "a2"}))

    async with running(settings, backend) as (_, client):
        await _sign_in(client, "accounting@nu.edu")

    async with running(settings, backend) as (_, client):
        r = await client.get("/v1/session")
        assert r.json()["principal"]["role_tag"] == "accounting"

        r = await client.get("/transactions")
        assert r.status_code == 200
        assert r.json()["page"] == "transactions"

        r = await client.get("/merchant")
        assert r.status_code == 303
        assert r.headers["location"] == "/accounting-home"


@pytest.mark.asyncio
async def test_inactive_user_is_sent_to_pin_change(settings: Settings, backend) -> None:
    backend.on("POST", "/login", (200, {"token": "t1", "userId": "u1"}))

    async with running(settings, backend) as (_, client):
        await _sign_in(client, "student01@nu.edu")
        r = await client.patch("/v1/session/profile", json={"isActive": False})
        assert r.status_code == 200

        r = await client.get("/user-dashboard")
        assert r.status_code == 303
        assert r.headers["location"] == "/change-pin"

        r = await client.get("/change-pin")
        assert r.status_code == 200


@pytest.mark.asyncio
async def test_logs_are_scoped_and_expired_token_logs_out(settings: Settings, backend) -> None:
    backend.on("POST", "/login", (200, {"token": "t3", "role": "merchant", "adminId": "m1"}))
    backend.on(
        "GET",
        "/admin/event-logs",
        (
            200,
            [
                {"eventType": "merchant_login", "timestamp": "2024-03-01T10:00:00Z"},
                {"eventType": "trip_end", "timestamp": "2024-03-01T11:00:00Z"},
            ],
        ),
    )

    async with running(settings, backend) as (_, client):
        await _sign_in(client, "merchant@nu.edu")

        r = await client.get("/v1/logs")
        assert r.status_code == 200
        body = r.json()
        assert body["total"] == 1
        assert body["records"][0]["record"]["eventType"] == "merchant_login"
        assert body["records"][0]["matched_groups"] == ["domain_activity"]

        r = await client.get("/v1/logs/types")
        assert "merchant_login" in [o["value"] for o in r.json()]

        backend.on("GET", "/admin/event-logs", (401, {"error": "Token expired"}))
        r = await client.get("/v1/logs")
        assert r.status_code == 303
        assert r.headers["location"] == "/login"

        r = await client.get("/v1/session")
        assert r.json()["logged_in"] is False


@pytest.mark.asyncio
async def test_sign_in_again_after_expired_token(settings: Settings, backend) -> None:
    backend.on("POST", "/login", (200, {"token": "t3", "role": "merchant", "adminId": "m1"}))
    backend.on("GET", "/admin/event-logs", (401, {"error": "Token expired"}))

    async with running(settings, backend) as (_, client):
        await _sign_in(client, "merchant@nu.edu")
        r = await client.get("/v1/logs")
        assert r.headers["location"] == "/login"

        r = await client.get("/login")
        assert r.status_code == 200
        flow = r.json()["flow"]
        assert flow["step"] == "email"
        assert flow["email"] == ""
        assert flow["principal_kind"] is None
        assert flow["role_tag"] is None

        backend.on("POST", "/login", (200, {"token": "t4", "role": "cafeteria", "adminId": "m2"}))
        view = await _sign_in(client, "cafeteria@nu.edu")
        assert view["step"] == "success"
        assert view["role_tag"] == "merchant"
        assert view["redirect_to"] == "/merchant"


@pytest.mark.asyncio
async def test_logout_clears_session_and_flow(settings: Settings, backend) -> None:
    backend.on("POST", "/login", (200, {"token": "t1"}))

    async with running(settings, backend) as (_, client):
        await _sign_in(client, "student01@nu.edu")

        r = await client.post("/v1/session/logout")
        assert r.json() == {"status": "logged_out", "redirect_to": "/login"}

        r = await client.get("/v1/auth")
        assert r.json()["step"] == "email"
        r = await client.get("/user-dashboard")
        assert r.headers["location"] == "/login"
