"""
campus_wallet.auth.heuristics

Provisional role guess from the typed email.

Responsibilities:
- Pick the login endpoint and portal copy before the backend has answered.

The result is a `UiHint`; it is never converted into an `AuthoritativeRole` and never
reaches the identity store.
"""

from __future__ import annotations

import enum

from campus_wallet.settings import Settings

_ADMIN_MARKERS = (
    "motorpool",
    "treasury",
    "accounting",
    "admin",
    "sysad",
    "merchant",
    "cafeteria",
    "bookstore",
    "printshop",
)


class UiHint(enum.StrEnum):
    admin = "admin"
    user = "user"

    @property
    def portal_title(self) -> str:
        return "Admin Portal" if self is UiHint.admin else "Student Portal"

    def login_path(self, settings: Settings) -> str:
        # Both audiences currently share the backend login endpoint.
        return settings.login_path


def infer_ui_hint(email: str) -> UiHint:
    lowered = email.strip().lower()
    if any(marker in lowered for marker in _ADMIN_MARKERS):
        return UiHint.admin
    return UiHint.user
