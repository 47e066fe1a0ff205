"""
campus_wallet.backend.errors

Error taxonomy for backend calls.

Responsibilities:
- Separate "could not talk to the backend" from "the backend said no".
"""

from __future__ import annotations

from typing import Any


class BackendError(Exception):
    pass


class BackendUnavailable(BackendError):
    """
    Transport failure, timeout, 5xx, or a body that is not the JSON we expect.
    """


class BackendRejected(BackendError):
    """
    Non-success 4xx answer. `message` is the backend's `error`/`message` field when present.
    """

    def __init__(self, status_code: int, message: str | None, payload: dict[str, Any] | None = None):
        super().__init__(f"{status_code}: {message or 'rejected'}")
        self.status_code = status_code
        self.message = message
        self.payload = payload or {}
