"""
campus_wallet.guards.deps

FastAPI integration for route guards.

Responsibilities:
- `guard_route(requirement)`: dependency factory that evaluates the guard per request.
- `RouteGuardInterrupt`: raised when the decision is not "allow".
- `route_guard_interrupt_handler`: renders the interrupt as a redirect or a loading placeholder.
"""

from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.responses import Response
from starlette.status import HTTP_202_ACCEPTED, HTTP_303_SEE_OTHER

from campus_wallet.api.deps import identity_store_from_app, settings_from_app
from campus_wallet.guards.route_guard import (
    GuardDecision,
    GuardOutcome,
    RouteRequirement,
    evaluate,
)
from campus_wallet.identity.models import Session
from campus_wallet.identity.store import IdentityStore
from campus_wallet.observability.logging import get_logger
from campus_wallet.settings import Settings

log = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class RouteGuardInterrupt(Exception):
    """
    Raised by a guarded route when navigation must not proceed.
    The app-level handler turns it into the response the decision asks for.
    """

    decision: GuardDecision
    path: str


def guard_route(requirement: RouteRequirement):
    async def _dep(
        request: Request,
        store: IdentityStore = Depends(identity_store_from_app),
        settings: Settings = Depends(settings_from_app),
    ) -> Session:
        decision = evaluate(store.snapshot(), requirement, settings)
        if not decision.allowed:
            raise RouteGuardInterrupt(decision=decision, path=request.url.path)
        # allow implies a session exists
        return store.session  # type: ignore[return-value]

    return _dep


async def route_guard_interrupt_handler(request: Request, exc: RouteGuardInterrupt) -> Response:
    decision = exc.decision
    if decision.outcome is GuardOutcome.show_loading:
        return JSONResponse(
            {"status": "loading"},
            status_code=HTTP_202_ACCEPTED,
            headers={"Retry-After": "1"},
        )

    log.info(
        "guard.redirect",
        outcome=decision.outcome,
        reason=decision.reason,
        requested=exc.path,
        location=decision.location,
    )
    return RedirectResponse(decision.location or "/", status_code=HTTP_303_SEE_OTHER)


# --- Module Notes -----------------------------------------------------------
# The dependency returns the active Session so route handlers never re-read the store
# to find out who is calling.
