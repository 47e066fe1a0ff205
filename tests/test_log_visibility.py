"""
tests.test_log_visibility

Department visibility over audit-log records.
"""

from __future__ import annotations

import pytest

from campus_wallet.identity.models import RoleTag
from campus_wallet.logs.models import EventRecord
from campus_wallet.logs.policy import filter_visible, is_visible, matched_groups, type_options

DEPARTMENTS = [r for r in RoleTag if r is not RoleTag.sysad]


def _record(**fields) -> EventRecord:
    return EventRecord.model_validate(fields)


def test_registration_for_a_user_is_visible_to_treasury_and_accounting() -> None:
    record = _record(eventType="registration", targetEntity="user")

    assert is_visible(RoleTag.treasury, record)
    assert is_visible(RoleTag.accounting, record)
    assert not is_visible(RoleTag.motorpool, record)
    assert not is_visible(RoleTag.merchant, record)


@pytest.mark.parametrize(
    "fields",
    [
        {},
        {"eventType": "maintenance_mode"},
        {"eventType": "login", "metadata": {"adminRole": "sysad"}},
        {"eventType": "student_deactivation", "department": "sysad"},
        {"type": "security", "title": "Repeated failures"},
    ],
)
def test_sysad_sees_records_no_department_sees(fields) -> None:
    record = _record(**fields)

    assert all(not is_visible(role, record) for role in DEPARTMENTS)
    assert is_visible(RoleTag.sysad, record)
    assert matched_groups(RoleTag.sysad, record) == ("sysad",)


@pytest.mark.parametrize("role", DEPARTMENTS)
def test_auth_events_need_matching_attribution(role: RoleTag) -> None:
    own = _record(eventType="login", metadata={"adminRole": role.value})
    other = _record(eventType="logout", metadata={"adminRole": "sysad"})

    assert matched_groups(role, own) == ("auth",)
    assert not is_visible(role, other)


def test_audit_events_follow_attribution() -> None:
    record = _record(eventType="concern_resolved", metadata={"adminRole": "motorpool"})

    assert matched_groups(RoleTag.motorpool, record) == ("audit",)
    assert not is_visible(RoleTag.merchant, record)


def test_unattributed_trip_refund_reaches_motorpool() -> None:
    record = _record(eventType="refund", tripId="trip-9", description="Trip cancelled")

    assert matched_groups(RoleTag.motorpool, record) == ("domain_activity", "entity_correlation")
    assert not is_visible(RoleTag.merchant, record)


def test_cash_in_requires_department_attribution() -> None:
    by_treasury = _record(eventType="cash_in", metadata={"adminRole": "treasury"})

    assert is_visible(RoleTag.treasury, by_treasury)
    assert not is_visible(RoleTag.accounting, by_treasury)


def test_merchant_activity_is_visible_without_attribution() -> None:
    record = _record(eventType="merchant_login")

    assert is_visible(RoleTag.merchant, record)
    assert not is_visible(RoleTag.treasury, record)


def test_data_management_matches_by_attribution_or_department() -> None:
    attributed = _record(eventType="export_auto", metadata={"adminRole": "merchant"})
    by_department = _record(eventType="config_updated", department="accounting")

    assert matched_groups(RoleTag.merchant, attributed) == ("data_management",)
    assert matched_groups(RoleTag.accounting, by_department) == ("data_management",)
    assert not is_visible(RoleTag.merchant, by_department)


@pytest.mark.parametrize(
    ("fields", "role"),
    [
        ({"targetEntity": "shuttle"}, RoleTag.motorpool),
        ({"driverId": {"_id": "d1", "name": "Ben"}}, RoleTag.motorpool),
        ({"merchantId": 42}, RoleTag.merchant),
        ({"targetEntity": "merchant"}, RoleTag.merchant),
        ({"transactionId": "tx1"}, RoleTag.accounting),
        ({"targetEntity": "transaction"}, RoleTag.treasury),
    ],
)
def test_entity_correlation(fields, role: RoleTag) -> None:
    record = _record(eventType="crud_update", **fields)

    assert matched_groups(role, record) == ("entity_correlation",)


def test_filter_visible_keeps_feed_order() -> None:
    records = [
        _record(eventType="trip_start", title="1"),
        _record(eventType="cash_in", title="2"),
        _record(eventType="route_change", title="3"),
    ]

    assert [r.title for r in filter_visible(RoleTag.motorpool, records)] == ["1", "3"]


def test_same_record_always_gets_same_answer() -> None:
    record = _record(eventType="export_manual", metadata={"adminRole": "treasury"})

    answers = {is_visible(RoleTag.treasury, record) for _ in range(5)}

    assert answers == {True}


def test_type_options_per_department() -> None:
    motorpool = [o.value for o in type_options(RoleTag.motorpool)]
    accounting = [o.value for o in type_options(RoleTag.accounting)]
    sysad = [o.value for o in type_options(RoleTag.sysad)]

    assert motorpool[:2] == ["login", "logout"]
    assert "trip_start" in motorpool and "cash_in" not in motorpool
    assert "registration" in accounting and "refund" not in accounting
    assert motorpool[-3:] == ["export_manual", "export_auto", "config_updated"]
    assert {"maintenance_mode", "student_deactivation"} <= set(sysad)
    assert set(motorpool) <= set(sysad)
