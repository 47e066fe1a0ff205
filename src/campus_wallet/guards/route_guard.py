"""
campus_wallet.guards.route_guard

Per-navigation access decision.

Responsibilities:
- Describe what a route requires (`RouteRequirement`).
- Decide allow / loading / redirect-to-login / redirect-to-fallback from an
  `IdentitySnapshot`, without side effects.

Rules, first match wins:
1. restoration still pending       -> show loading
2. no session                      -> login route
3. kind or department not allowed  -> the principal's own landing route
4. user with isActive == False     -> PIN-change route (absent isActive is not inactive)
5. otherwise                       -> allow
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from campus_wallet.guards.landing import landing_path
from campus_wallet.identity.models import IdentitySnapshot, PrincipalKind, RoleTag
from campus_wallet.settings import Settings


class GuardOutcome(enum.StrEnum):
    allow = "allow"
    show_loading = "show_loading"
    redirect_login = "redirect_login"
    redirect_fallback = "redirect_fallback"


@dataclass(frozen=True, slots=True)
class GuardDecision:
    outcome: GuardOutcome
    location: str | None = None
    reason: str | None = None

    @property
    def allowed(self) -> bool:
        return self.outcome is GuardOutcome.allow


@dataclass(frozen=True, slots=True)
class RouteRequirement:
    """
    `kinds=None` / `roles=None` mean "any". `roles` only constrains admin principals;
    a user principal never satisfies a non-empty role set.
    """

    kinds: frozenset[PrincipalKind] | None = None
    roles: frozenset[RoleTag] | None = None
    allow_inactive: bool = False

    @classmethod
    def user_only(cls, *, allow_inactive: bool = False) -> RouteRequirement:
        return cls(kinds=frozenset({PrincipalKind.user}), allow_inactive=allow_inactive)

    @classmethod
    def admin(cls, *roles: RoleTag) -> RouteRequirement:
        return cls(
            kinds=frozenset({PrincipalKind.admin}),
            roles=frozenset(roles) if roles else None,
        )


ALLOW = GuardDecision(GuardOutcome.allow)
LOADING = GuardDecision(GuardOutcome.show_loading, reason="restoring")


def evaluate(
    snapshot: IdentitySnapshot,
    requirement: RouteRequirement,
    settings: Settings,
) -> GuardDecision:
    if not snapshot.restored:
        return LOADING

    session = snapshot.session
    if session is None:
        return GuardDecision(
            GuardOutcome.redirect_login, location=settings.login_route, reason="no_session"
        )

    principal = session.principal
    if requirement.kinds is not None and principal.kind not in requirement.kinds:
        return GuardDecision(
            GuardOutcome.redirect_fallback,
            location=landing_path(principal, settings),
            reason="kind_not_permitted",
        )
    if requirement.roles is not None and principal.role_tag not in requirement.roles:
        return GuardDecision(
            GuardOutcome.redirect_fallback,
            location=landing_path(principal, settings),
            reason="role_not_permitted",
        )

    if (
        principal.kind is PrincipalKind.user
        and principal.is_active is False
        and not requirement.allow_inactive
    ):
        return GuardDecision(
            GuardOutcome.redirect_fallback,
            location=settings.change_pin_route,
            reason="inactive_account",
        )

    return ALLOW


# --- Module Notes -----------------------------------------------------------
# `evaluate` is a pure function of its arguments so the same snapshot always yields the
# same decision; the FastAPI wiring lives in `guards.deps`.
