"""
campus_wallet.observability.middleware

HTTP middleware for request-scoped logging context.

Responsibilities:
- Generate/propagate request IDs.
- Bind request metadata and the acting principal (kind/role only) into structlog contextvars.
"""

from __future__ import annotations

import uuid

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response


class RequestContextMiddleware(BaseHTTPMiddleware):
    """
    Every portal request gets a request id; when someone is signed in, log lines also
    carry who is acting (`principal_kind`, `role_tag`) without naming the account.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            path=request.url.path,
            method=request.method,
            **_principal_context(request),
        )
        try:
            response: Response = await call_next(request)
        finally:
            structlog.contextvars.clear_contextvars()

        response.headers["x-request-id"] = request_id
        return response


def _principal_context(request: Request) -> dict[str, str]:
    store = getattr(request.app.state, "identity_store", None)
    session = store.session if store is not None else None
    if session is None:
        return {}
    ctx = {"principal_kind": session.principal.kind.value}
    if session.principal.role_tag is not None:
        ctx["role_tag"] = session.principal.role_tag.value
    return ctx


# --- Module Notes -----------------------------------------------------------
# The identity store is read, never written, here; account ids and emails stay out of
# the request context.
