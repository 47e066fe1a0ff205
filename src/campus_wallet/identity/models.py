"""
campus_wallet.identity.models

Identity domain models.

Responsibilities:
- Define the closed set of admin departments (`RoleTag`).
- Define the authenticated identity (`Principal`) and its durable proof (`Session`).
- Define `AuthoritativeRole`, the only role value allowed to reach `IdentityStore.commit`.
- Define the two storage namespaces and their key names.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any


class RoleTag(enum.StrEnum):
    # Admin departments. Values are the strings the backend sends in `role`.
    treasury = "treasury"
    accounting = "accounting"
    sysad = "sysad"
    motorpool = "motorpool"
    merchant = "merchant"

    @classmethod
    def parse(cls, value: Any) -> RoleTag | None:
        if isinstance(value, str):
            normalized = value.strip().lower()
            try:
                return cls(_OUTLET_ROLES.get(normalized, normalized))
            except ValueError:
                return None
        return None


# Merchant outlets the backend may name instead of "merchant".
_OUTLET_ROLES = {
    "cafeteria": RoleTag.merchant.value,
    "bookstore": RoleTag.merchant.value,
    "printshop": RoleTag.merchant.value,
}


class PrincipalKind(enum.StrEnum):
    user = "user"
    admin = "admin"


class StorageNamespace(enum.Enum):
    """
    Two independent persisted records; exactly one is authoritative at a time.
    """

    admin = ("adminToken", "adminData")
    user = ("userToken", "userData")

    @property
    def token_key(self) -> str:
        return self.value[0]

    @property
    def data_key(self) -> str:
        return self.value[1]

    @property
    def keys(self) -> tuple[str, str]:
        return self.value

    @property
    def kind(self) -> PrincipalKind:
        return PrincipalKind.admin if self is StorageNamespace.admin else PrincipalKind.user

    @classmethod
    def for_kind(cls, kind: PrincipalKind) -> StorageNamespace:
        return cls.admin if kind is PrincipalKind.admin else cls.user

    @property
    def other(self) -> StorageNamespace:
        return StorageNamespace.user if self is StorageNamespace.admin else StorageNamespace.admin


ALL_STORAGE_KEYS: tuple[str, ...] = (*StorageNamespace.admin.keys, *StorageNamespace.user.keys)


@dataclass(frozen=True, slots=True)
class AuthoritativeRole:
    """
    Role as asserted by the backend's credential response.

    Client-side guesses (see `auth.heuristics.UiHint`) are a different type on purpose:
    only this value decides which namespace a session is committed to.
    """

    kind: PrincipalKind
    role_tag: RoleTag | None = None

    def __post_init__(self) -> None:
        if self.kind is PrincipalKind.admin and self.role_tag is None:
            raise ValueError("admin role requires a role tag")
        if self.kind is PrincipalKind.user and self.role_tag is not None:
            raise ValueError("user role cannot carry a role tag")

    @classmethod
    def from_server(cls, role: Any) -> AuthoritativeRole:
        # Outlet roles count as merchant. Anything else outside the closed admin set
        # (student, employee, driver, absent) is a user.
        tag = RoleTag.parse(role)
        if tag is None:
            return cls(kind=PrincipalKind.user)
        return cls(kind=PrincipalKind.admin, role_tag=tag)


@dataclass(frozen=True, slots=True)
class Principal:
    """
    Authenticated identity.

    `profile` keeps the full payload the backend returned (minus the token) so that
    profile edits can be written back without losing fields this model does not name.
    """

    kind: PrincipalKind
    role_tag: RoleTag | None
    account_id: str | None
    email: str | None
    display_name: str | None
    is_active: bool | None
    profile: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)

    def __post_init__(self) -> None:
        if self.kind is PrincipalKind.admin and self.role_tag is None:
            raise ValueError("admin principal requires a role tag")
        if self.kind is PrincipalKind.user and self.role_tag is not None:
            raise ValueError("user principal cannot carry a role tag")

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any], *, kind: PrincipalKind) -> Principal:
        """
        Build a Principal from a stored/backend payload.

        Raises ValueError when the payload cannot describe a principal of `kind`.
        """

        if not isinstance(payload, Mapping):
            raise ValueError("principal payload must be an object")

        role_tag: RoleTag | None = None
        if kind is PrincipalKind.admin:
            role_tag = RoleTag.parse(payload.get("role"))
            if role_tag is None:
                raise ValueError(f"unknown admin role: {payload.get('role')!r}")

        is_active = payload.get("isActive")
        return cls(
            kind=kind,
            role_tag=role_tag,
            account_id=_first_str(payload, "accountId", "adminId", "userId", "id", "_id"),
            email=_first_str(payload, "email"),
            display_name=_display_name(payload),
            # Only a real boolean counts; anything else means "unknown".
            is_active=is_active if isinstance(is_active, bool) else None,
            profile=dict(payload),
        )


@dataclass(frozen=True, slots=True)
class Session:
    principal: Principal
    token: str

    def __post_init__(self) -> None:
        if not self.token:
            raise ValueError("session token must be non-empty")

    @property
    def namespace(self) -> StorageNamespace:
        return StorageNamespace.for_kind(self.principal.kind)


@dataclass(frozen=True, slots=True)
class IdentitySnapshot:
    # What route guards see: whether restoration finished, and the session if any.
    restored: bool
    session: Session | None


def _first_str(payload: Mapping[str, Any], *keys: str) -> str | None:
    for key in keys:
        value = payload.get(key)
        if value is not None and str(value).strip():
            return str(value)
    return None


def _display_name(payload: Mapping[str, Any]) -> str | None:
    name = _first_str(payload, "fullName", "name", "businessName")
    if name:
        return name
    parts = [str(payload[k]).strip() for k in ("firstName", "lastName") if payload.get(k)]
    return " ".join(p for p in parts if p) or None


# --- Module Notes -----------------------------------------------------------
# Principal invariants are enforced in __post_init__ so a malformed principal can never
# exist in memory; the store relies on that when it validates persisted records.
