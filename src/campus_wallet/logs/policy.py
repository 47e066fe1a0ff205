"""
campus_wallet.logs.policy

Department-scoped visibility over the shared audit-log feed.

Responsibilities:
- Decide, per (viewer department, record), whether the record is shown.
- Keep each rule a named, pure predicate group so decisions can be explained.
- Offer the per-department list of event types the feed can be filtered by.

A non-sysad viewer sees a record iff at least one group matches:
- auth:               login/logout attributed to the viewer's department
- audit:              CRUD, notes and concern resolution attributed to the department
- domain_activity:    department-specific event types (some need attribution, some not)
- data_management:    exports/config updates attributed to the department, or `department` match
- entity_correlation: target entity / foreign keys / event types owned by the department
`sysad` sees everything.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from types import MappingProxyType

from campus_wallet.identity.models import RoleTag
from campus_wallet.logs.models import EventRecord

Predicate = Callable[[RoleTag, EventRecord], bool]

AUTH_EVENTS = frozenset({"login", "logout"})
AUDIT_EVENTS = frozenset(
    {
        "crud_create",
        "crud_update",
        "crud_delete",
        "note_added",
        "note_updated",
        "concern_resolved",
    }
)
EXPORT_EVENTS = frozenset({"export_manual", "export_auto"})
CONFIG_EVENTS = frozenset({"config_updated"})

DEPARTMENT_VIEWERS = frozenset(RoleTag) - {RoleTag.sysad}

# Activity recorded by the system or by non-admin actors (drivers, merchants).
_UNATTRIBUTED_ACTIVITY = MappingProxyType(
    {
        RoleTag.motorpool: frozenset(
            {"driver_login", "driver_logout", "trip_start", "trip_end", "route_change", "refund"}
        ),
        RoleTag.merchant: frozenset({"merchant_login", "merchant_logout"}),
        RoleTag.treasury: frozenset(),
        RoleTag.accounting: frozenset(),
    }
)

# Activity performed by department admins themselves.
_ATTRIBUTED_ACTIVITY = MappingProxyType(
    {
        RoleTag.motorpool: frozenset(),
        RoleTag.merchant: frozenset(),
        RoleTag.treasury: frozenset({"cash_in", "registration"}),
        RoleTag.accounting: frozenset({"cash_in", "registration"}),
    }
)

_CORRELATED_ENTITIES = MappingProxyType(
    {
        RoleTag.motorpool: frozenset({"driver", "shuttle", "route", "trip", "phone"}),
        RoleTag.merchant: frozenset({"merchant"}),
        RoleTag.treasury: frozenset({"user", "transaction"}),
        RoleTag.accounting: frozenset({"user", "transaction"}),
    }
)

_CORRELATED_FIELDS = MappingProxyType(
    {
        RoleTag.motorpool: ("driver_id", "shuttle_id", "route_id", "trip_id"),
        RoleTag.merchant: ("merchant_id",),
        RoleTag.treasury: ("user_id", "transaction_id"),
        RoleTag.accounting: ("user_id", "transaction_id"),
    }
)

_CORRELATED_EVENTS = MappingProxyType(
    {
        RoleTag.motorpool: frozenset(),
        RoleTag.merchant: frozenset(),
        RoleTag.treasury: frozenset({"registration"}),
        RoleTag.accounting: frozenset({"registration"}),
    }
)

for _table in (
    _UNATTRIBUTED_ACTIVITY,
    _ATTRIBUTED_ACTIVITY,
    _CORRELATED_ENTITIES,
    _CORRELATED_FIELDS,
    _CORRELATED_EVENTS,
):
    if set(_table) != DEPARTMENT_VIEWERS:
        raise RuntimeError(f"visibility table does not cover {sorted(DEPARTMENT_VIEWERS - set(_table))}")


def _attributed(viewer: RoleTag, record: EventRecord) -> bool:
    return record.admin_role == viewer.value


def _auth(viewer: RoleTag, record: EventRecord) -> bool:
    return record.event_type in AUTH_EVENTS and _attributed(viewer, record)


def _audit(viewer: RoleTag, record: EventRecord) -> bool:
    return record.event_type in AUDIT_EVENTS and _attributed(viewer, record)


def _domain_activity(viewer: RoleTag, record: EventRecord) -> bool:
    if record.event_type in _UNATTRIBUTED_ACTIVITY[viewer]:
        return True
    return record.event_type in _ATTRIBUTED_ACTIVITY[viewer] and _attributed(viewer, record)


def _data_management(viewer: RoleTag, record: EventRecord) -> bool:
    # Two independent ways in: admin attribution, or the record's own department field.
    if record.event_type in EXPORT_EVENTS | CONFIG_EVENTS and _attributed(viewer, record):
        return True
    return record.department == viewer.value


def _entity_correlation(viewer: RoleTag, record: EventRecord) -> bool:
    if record.target_entity in _CORRELATED_ENTITIES[viewer]:
        return True
    if record.event_type in _CORRELATED_EVENTS[viewer]:
        return True
    return any(getattr(record, name) for name in _CORRELATED_FIELDS[viewer])


PREDICATE_GROUPS: tuple[tuple[str, Predicate], ...] = (
    ("auth", _auth),
    ("audit", _audit),
    ("domain_activity", _domain_activity),
    ("data_management", _data_management),
    ("entity_correlation", _entity_correlation),
)


def matched_groups(viewer: RoleTag, record: EventRecord) -> tuple[str, ...]:
    """
    Names of the predicate groups that make `record` visible to `viewer`.

    For `sysad` this is `("sysad",)`: the department sees every record regardless of groups.
    """

    if viewer is RoleTag.sysad:
        return ("sysad",)
    return tuple(name for name, predicate in PREDICATE_GROUPS if predicate(viewer, record))


def is_visible(viewer: RoleTag, record: EventRecord) -> bool:
    if viewer is RoleTag.sysad:
        return True
    return any(predicate(viewer, record) for _, predicate in PREDICATE_GROUPS)


def filter_visible(viewer: RoleTag, records: Iterable[EventRecord]) -> list[EventRecord]:
    return [record for record in records if is_visible(viewer, record)]


@dataclass(frozen=True, slots=True)
class TypeOption:
    value: str
    label: str


_LABELS = MappingProxyType(
    {
        "login": "Admin Login",
        "logout": "Admin Logout",
        "crud_create": "Create Record",
        "crud_update": "Update Record",
        "crud_delete": "Delete Record",
        "note_added": "Note Added",
        "note_updated": "Note Updated",
        "concern_resolved": "Concern Resolved",
        "driver_login": "Driver Login",
        "driver_logout": "Driver Logout",
        "trip_start": "Trip Start",
        "trip_end": "Trip End",
        "route_change": "Route Change",
        "refund": "Refund",
        "merchant_login": "Merchant Login",
        "merchant_logout": "Merchant Logout",
        "cash_in": "Cash In",
        "registration": "Registration",
        "export_manual": "Manual Export",
        "export_auto": "Auto Export",
        "maintenance_mode": "Maintenance Mode",
        "student_deactivation": "Student Deactivation",
        "config_updated": "Config Updated",
    }
)

_COMMON_TYPES = ("login", "logout", *sorted(AUDIT_EVENTS, key=list(_LABELS).index))
_DATA_TYPES = ("export_manual", "export_auto", "config_updated")


def type_options(viewer: RoleTag) -> tuple[TypeOption, ...]:
    """
    Event types a viewer can filter the feed by, in display order.
    """

    if viewer is RoleTag.sysad:
        values: Iterable[str] = _LABELS
    else:
        domain = (_UNATTRIBUTED_ACTIVITY[viewer] | _ATTRIBUTED_ACTIVITY[viewer]) - set(_COMMON_TYPES)
        values = (*_COMMON_TYPES, *sorted(domain, key=list(_LABELS).index), *_DATA_TYPES)
    return tuple(TypeOption(value=v, label=_LABELS[v]) for v in values)


# --- Module Notes -----------------------------------------------------------
# Groups are independent and order-free; a record touching two departments (a registration
# seen by treasury and accounting) is visible to both.
