"""
campus_wallet.backend.client

HTTP client boundary to the wallet REST backend.

Responsibilities:
- Credential verification (`POST /login`), including the activation-required answer.
- PIN recovery: request an OTP, reset the PIN with `{email, otp, newPin}`.
- Authenticated reads for admins (event logs) with attribution headers.
- Convert transport/status failures into `BackendUnavailable` / `BackendRejected`.
"""

from __future__ import annotations

from typing import Any

import httpx

from campus_wallet.backend.errors import BackendRejected, BackendUnavailable
from campus_wallet.backend.models import LoginResponse, MaintenanceStatus
from campus_wallet.identity.models import Session
from campus_wallet.settings import Settings


class WalletApiClient:
    """
    Thin async wrapper: one method per backend operation the portal core needs.
    The httpx client is owned by the caller (app lifespan or test).
    """

    def __init__(self, *, settings: Settings, http: httpx.AsyncClient) -> None:
        self._settings = settings
        self._http = http

    async def login(self, *, email: str, pin: str, path: str | None = None) -> LoginResponse:
        status, body = await self._send(
            "POST",
            path or self._settings.login_path,
            json={"emailOrUsername": email, "password": pin},
        )
        data = body if isinstance(body, dict) else {}
        # 403 + requiresActivation is an alternate outcome, not a failure.
        if status < 400 or (status == 403 and data.get("requiresActivation")):
            return LoginResponse.model_validate(data)
        raise BackendRejected(status, _error_message(data), data)

    async def request_pin_reset(self, *, email: str) -> None:
        await self._checked("POST", self._settings.forgot_pin_path, json={"email": email})

    async def reset_pin(self, *, email: str, otp: str, new_pin: str) -> None:
        await self._checked(
            "POST",
            self._settings.reset_pin_path,
            json={"email": email, "otp": otp, "newPin": new_pin},
        )

    async def event_logs(self, *, session: Session) -> list[dict[str, Any]]:
        role_tag = session.principal.role_tag
        body = await self._checked(
            "GET",
            self._settings.event_logs_path,
            params={"department": role_tag.value if role_tag else "sysad"},
            headers=_auth_headers(session),
        )
        if isinstance(body, dict):
            body = body.get("logs", body.get("data", []))
        if not isinstance(body, list):
            raise BackendUnavailable("event log feed is not a list")
        return [item for item in body if isinstance(item, dict)]

    async def maintenance_status(self) -> MaintenanceStatus:
        body = await self._checked("GET", self._settings.maintenance_status_path)
        return MaintenanceStatus.model_validate(body if isinstance(body, dict) else {})

    async def _checked(self, method: str, path: str, **kwargs: Any) -> Any:
        status, body = await self._send(method, path, **kwargs)
        if status >= 400:
            data = body if isinstance(body, dict) else {}
            raise BackendRejected(status, _error_message(data), data)
        return body

    async def _send(self, method: str, path: str, **kwargs: Any) -> tuple[int, Any]:
        try:
            r = await self._http.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise BackendUnavailable(f"{method} {path}: {e.__class__.__name__}") from e

        if r.status_code >= 500:
            raise BackendUnavailable(f"{method} {path}: HTTP {r.status_code}")
        if not r.content:
            return r.status_code, {}
        try:
            return r.status_code, r.json()
        except ValueError as e:
            raise BackendUnavailable(f"{method} {path}: non-JSON body") from e


def _auth_headers(session: Session) -> dict[str, str]:
    headers = {"Authorization": f"Bearer {session.token}"}
    principal = session.principal
    if principal.role_tag is not None:
        headers.update(
            {
                "X-Admin-Id": principal.account_id or "",
                "X-Admin-Name": principal.display_name or "",
                "X-Admin-Role": principal.role_tag.value,
                "X-Admin-Department": principal.role_tag.value,
            }
        )
    return headers


def _error_message(data: dict[str, Any]) -> str | None:
    value = data.get("error") or data.get("message")
    return str(value) if value else None


def build_http_client(
    settings: Settings, *, transport: httpx.AsyncBaseTransport | None = None
) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        base_url=settings.backend_base_url.rstrip("/"),
        timeout=settings.backend_timeout_seconds,
        headers={"Content-Type": "application/json"},
        transport=transport,
    )


# --- Module Notes -----------------------------------------------------------
# There is no verify-otp call: the recovery flow sends the OTP once,
# together with the new PIN, at the final reset step.
