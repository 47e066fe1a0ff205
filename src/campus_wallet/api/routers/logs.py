"""
campus_wallet.api.routers.logs

Department-scoped audit-log endpoints for admins.

Responsibilities:
- Serve the visible subset of the shared feed with search, filters, sort and pages.
- Serve the per-department event-type filter options.
- Treat a backend 401 as an expired session: clear the store, reset the sign-in flow and
  send the admin to login.
"""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel
from starlette.status import HTTP_401_UNAUTHORIZED, HTTP_403_FORBIDDEN, HTTP_502_BAD_GATEWAY

from campus_wallet.api.deps import (
    auth_flow_from_app,
    identity_store_from_app,
    log_feed_from_app,
    settings_from_app,
)
from campus_wallet.auth.flow import AuthFlow
from campus_wallet.backend.errors import BackendRejected, BackendUnavailable
from campus_wallet.guards.deps import RouteGuardInterrupt, guard_route
from campus_wallet.guards.route_guard import GuardDecision, GuardOutcome, RouteRequirement
from campus_wallet.identity.models import Session
from campus_wallet.identity.store import IdentityStore
from campus_wallet.logs.feed import LogFeed, LogQuery, SortKey
from campus_wallet.logs.policy import matched_groups, type_options
from campus_wallet.observability.logging import get_logger
from campus_wallet.settings import Settings

log = get_logger(__name__)

router = APIRouter(prefix="/v1/logs", tags=["logs"])

_admin_only = guard_route(RouteRequirement.admin())


class LogRecordView(BaseModel):
    record: dict[str, Any]
    matched_groups: list[str]


class LogPageView(BaseModel):
    records: list[LogRecordView]
    page: int
    total_pages: int
    total: int


class TypeOptionView(BaseModel):
    value: str
    label: str


@router.get("", response_model=LogPageView)
async def list_logs(
    search: str = Query(default="", max_length=200),
    event_type: str | None = Query(default=None, alias="type"),
    status: str | None = Query(default=None),
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    sort: SortKey = Query(default=SortKey.timestamp),
    page: int = Query(default=1, ge=1),
    session: Session = Depends(_admin_only),
    feed: LogFeed = Depends(log_feed_from_app),
    store: IdentityStore = Depends(identity_store_from_app),
    flow: AuthFlow = Depends(auth_flow_from_app),
    settings: Settings = Depends(settings_from_app),
) -> LogPageView:
    query = LogQuery(
        search=search,
        event_type=event_type,
        status=status,
        start_date=start_date,
        end_date=end_date,
        sort=sort,
        page=page,
    )
    try:
        result = await feed.query(session, query)
    except BackendRejected as e:
        if e.status_code == HTTP_401_UNAUTHORIZED:
            await store.clear()
            flow.reset()
            log.info("logs.session_expired")
            decision = GuardDecision(
                GuardOutcome.redirect_login,
                location=settings.login_route,
                reason="backend_unauthorized",
            )
            raise RouteGuardInterrupt(decision=decision, path="/v1/logs") from e
        if e.status_code == HTTP_403_FORBIDDEN:
            raise HTTPException(status_code=HTTP_403_FORBIDDEN, detail=e.message or "Forbidden") from e
        raise HTTPException(status_code=HTTP_502_BAD_GATEWAY, detail="Backend rejected the request") from e
    except BackendUnavailable as e:
        log.warning("logs.backend_unavailable", error=str(e))
        raise HTTPException(status_code=HTTP_502_BAD_GATEWAY, detail="Backend unavailable") from e

    viewer = session.principal.role_tag
    return LogPageView(
        records=[
            LogRecordView(
                record=r.model_dump(mode="json", by_alias=True, exclude_none=True),
                matched_groups=list(matched_groups(viewer, r)),  # type: ignore[arg-type]
            )
            for r in result.records
        ],
        page=result.page,
        total_pages=result.total_pages,
        total=result.total,
    )


@router.get("/types", response_model=list[TypeOptionView])
async def list_type_options(session: Session = Depends(_admin_only)) -> list[TypeOptionView]:
    viewer = session.principal.role_tag
    return [
        TypeOptionView(value=o.value, label=o.label)
        for o in type_options(viewer)  # type: ignore[arg-type]
    ]


# --- Module Notes -----------------------------------------------------------
# `_admin_only` guarantees an admin session, so `role_tag` is set for every caller here.
