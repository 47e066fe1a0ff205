"""
campus_wallet.auth.inputs

Input rules shared by every step of the flow.

Responsibilities:
- Digit-only, length-capped secret fields (PIN, OTP), enforced at input time.
- Submit-time format checks for emails and 6-digit secrets.
"""

from __future__ import annotations

import re

SECRET_LENGTH = 6

_DIGITS = re.compile(r"[0-9]*")
_SIX_DIGITS = re.compile(r"[0-9]{6}")
_EMAIL = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")


def accept_digits(current: str, candidate: str, *, limit: int = SECRET_LENGTH) -> str:
    """
    Return the new field value for a keystroke/paste.

    Any non-digit rejects the whole edit (the field keeps `current`); longer input is
    truncated to `limit`, like a maxlength attribute.
    """

    if not _DIGITS.fullmatch(candidate):
        return current
    return candidate[:limit]


def is_six_digits(value: str) -> bool:
    return bool(_SIX_DIGITS.fullmatch(value))


def is_email(value: str) -> bool:
    return bool(_EMAIL.fullmatch(value.strip()))
