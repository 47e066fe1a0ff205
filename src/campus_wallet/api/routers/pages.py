"""
campus_wallet.api.routers.pages

Guarded page routes of the portal.

Responsibilities:
- Login entry: redirect away when a session already exists.
- One landing page per admin department plus the user dashboard.
- Shared admin pages with multi-department access (transactions).
- PIN-change page reachable by inactive user accounts.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from campus_wallet.api.deps import auth_flow_from_app, identity_store_from_app, settings_from_app
from campus_wallet.api.routers.auth import FlowView, flow_view
from campus_wallet.api.routers.session import PrincipalView
from campus_wallet.auth.flow import AuthFlow
from campus_wallet.auth.steps import TERMINAL_STEPS
from campus_wallet.guards.deps import RouteGuardInterrupt, guard_route
from campus_wallet.guards.landing import ROLE_LANDING, landing_path
from campus_wallet.guards.route_guard import LOADING, GuardDecision, GuardOutcome, RouteRequirement
from campus_wallet.identity.models import RoleTag, Session
from campus_wallet.identity.store import IdentityStore
from campus_wallet.settings import Settings


class PageView(BaseModel):
    page: str
    principal: PrincipalView


class LoginPageView(BaseModel):
    page: str = "login"
    flow: FlowView


async def login_page(
    store: IdentityStore = Depends(identity_store_from_app),
    flow: AuthFlow = Depends(auth_flow_from_app),
    settings: Settings = Depends(settings_from_app),
) -> LoginPageView:
    snapshot = store.snapshot()
    if not snapshot.restored:
        raise RouteGuardInterrupt(decision=LOADING, path=settings.login_route)
    if snapshot.session is not None:
        decision = GuardDecision(
            GuardOutcome.redirect_fallback,
            location=landing_path(snapshot.session.principal, settings),
            reason="already_signed_in",
        )
        raise RouteGuardInterrupt(decision=decision, path=settings.login_route)
    if isinstance(flow.step, TERMINAL_STEPS):
        # Left over from a session that has since ended (logout, expiry) or a hand-off.
        flow.reset()
    return LoginPageView(flow=flow_view(flow))


def _page(name: str, requirement: RouteRequirement):
    async def _view(
        session: Session = Depends(guard_route(requirement)),
        settings: Settings = Depends(settings_from_app),
    ) -> PageView:
        return PageView(page=name, principal=PrincipalView.of(session.principal, settings))

    return _view


def build_router(settings: Settings) -> APIRouter:
    """
    Page paths come from settings (login, user dashboard, PIN change) and from the
    closed department landing map.
    """

    router = APIRouter(tags=["pages"])
    router.add_api_route(
        settings.login_route, login_page, methods=["GET"], response_model=LoginPageView
    )

    pages: list[tuple[str, str, RouteRequirement]] = [
        (path, f"{role.value}-home", RouteRequirement.admin(role))
        for role, path in ROLE_LANDING.items()
    ]
    pages += [
        (settings.user_landing_route, "user-dashboard", RouteRequirement.user_only()),
        (settings.change_pin_route, "change-pin", RouteRequirement.user_only(allow_inactive=True)),
        (
            "/transactions",
            "transactions",
            RouteRequirement.admin(RoleTag.treasury, RoleTag.accounting),
        ),
    ]
    for path, name, requirement in pages:
        router.add_api_route(
            path,
            _page(name, requirement),
            methods=["GET"],
            response_model=PageView,
            name=name.replace("-", "_"),
        )
    return router


# --- Module Notes -----------------------------------------------------------
# Pages answer with small JSON view models; rendering belongs to whatever front end
# sits on top of the portal.
