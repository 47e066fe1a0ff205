"""
campus_wallet.guards.landing

Default landing route per principal.

Responsibilities:
- Map every admin department to its own home route (closed mapping).
- Send user principals to the user dashboard.
"""

from __future__ import annotations

from types import MappingProxyType

from campus_wallet.identity.models import Principal, RoleTag
from campus_wallet.settings import Settings

ROLE_LANDING = MappingProxyType(
    {
        RoleTag.treasury: "/treasury-dashboard",
        RoleTag.accounting: "/accounting-home",
        RoleTag.sysad: "/sysad-dashboard",
        RoleTag.motorpool: "/motorpool",
        RoleTag.merchant: "/merchant",
    }
)

_missing = set(RoleTag) - set(ROLE_LANDING)
if _missing:
    raise RuntimeError(f"landing route missing for roles: {sorted(_missing)}")


def landing_path(principal: Principal, settings: Settings) -> str:
    if principal.role_tag is None:
        return settings.user_landing_route
    return ROLE_LANDING[principal.role_tag]


# --- Module Notes -----------------------------------------------------------
# The import-time check fails fast when a RoleTag is added without a landing route.
