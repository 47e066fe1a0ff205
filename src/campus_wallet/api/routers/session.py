"""
campus_wallet.api.routers.session

Current-session endpoints.

Responsibilities:
- Report who is signed in (never the token) and any storage warning.
- Patch the signed-in principal's profile in place.
- Log out: clear both storage namespaces and reset the sign-in flow.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends, HTTPException
from pydantic import BaseModel
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_422_UNPROCESSABLE_ENTITY

from campus_wallet.api.deps import auth_flow_from_app, identity_store_from_app, settings_from_app
from campus_wallet.auth.flow import AuthFlow
from campus_wallet.guards.landing import landing_path
from campus_wallet.identity.models import Principal
from campus_wallet.identity.store import IdentityStore, NoActiveSessionError
from campus_wallet.settings import Settings

router = APIRouter(prefix="/v1/session", tags=["session"])


class PrincipalView(BaseModel):
    kind: str
    role_tag: str | None
    account_id: str | None
    email: str | None
    display_name: str | None
    is_active: bool | None
    landing: str

    @classmethod
    def of(cls, principal: Principal, settings: Settings) -> PrincipalView:
        return cls(
            kind=principal.kind.value,
            role_tag=principal.role_tag.value if principal.role_tag else None,
            account_id=principal.account_id,
            email=principal.email,
            display_name=principal.display_name,
            is_active=principal.is_active,
            landing=landing_path(principal, settings),
        )


class SessionView(BaseModel):
    restored: bool
    logged_in: bool
    principal: PrincipalView | None = None
    storage_warning: str | None = None


def session_view(store: IdentityStore, settings: Settings) -> SessionView:
    session = store.session
    return SessionView(
        restored=store.restored,
        logged_in=session is not None,
        principal=PrincipalView.of(session.principal, settings) if session else None,
        storage_warning=store.storage_warning,
    )


@router.get("", response_model=SessionView)
async def get_session(
    store: IdentityStore = Depends(identity_store_from_app),
    settings: Settings = Depends(settings_from_app),
) -> SessionView:
    return session_view(store, settings)


@router.patch("/profile", response_model=SessionView)
async def patch_profile(
    changes: dict[str, Any] = Body(...),
    store: IdentityStore = Depends(identity_store_from_app),
    settings: Settings = Depends(settings_from_app),
) -> SessionView:
    try:
        await store.patch(changes)
    except NoActiveSessionError as e:
        raise HTTPException(status_code=HTTP_401_UNAUTHORIZED, detail="Not signed in") from e
    except ValueError as e:
        raise HTTPException(status_code=HTTP_422_UNPROCESSABLE_ENTITY, detail=str(e)) from e
    return session_view(store, settings)


@router.post("/logout")
async def logout(
    store: IdentityStore = Depends(identity_store_from_app),
    flow: AuthFlow = Depends(auth_flow_from_app),
    settings: Settings = Depends(settings_from_app),
) -> dict[str, str]:
    await store.clear()
    flow.reset()
    return {"status": "logged_out", "redirect_to": settings.login_route}


# --- Module Notes -----------------------------------------------------------
# Logout clears both namespaces without asking which one was active.
