"""
tests.test_observability

Log hygiene helpers.
"""

from __future__ import annotations

from campus_wallet.observability.logging import REDACTED, _redact_secrets, mask_email


def test_mask_email_keeps_only_first_letter_and_domain() -> None:
    assert mask_email("student01@nu.edu") == "s***@nu.edu"
    assert mask_email("no-at-sign") == "***"
    assert mask_email(None) == ""


def test_secret_fields_are_redacted() -> None:
    event = _redact_secrets(None, "info", {"event": "x", "otp": "123456", "newPin": "111111", "step": "pin"})

    assert event == {"event": "x", "otp": REDACTED, "newPin": REDACTED, "step": "pin"}
