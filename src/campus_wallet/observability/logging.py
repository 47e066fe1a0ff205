"""
campus_wallet.observability.logging

Structured logging configuration for the portal.

Responsibilities:
- Configure `structlog` for JSON logs, one event per line.
- Provide a small wrapper for obtaining bound loggers.
- Keep personal data out of log lines: masked emails, secrets redacted at render time.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog

# Field names that carry credentials anywhere in the portal (ours or the backend's).
SECRET_FIELDS = frozenset({"pin", "new_pin", "newPin", "otp", "password", "token", "authorization"})
REDACTED = "[redacted]"


def configure_logging(*, service_name: str, level: str) -> None:
    """
    Every event carries `service`, ISO UTC `timestamp`, `level` and `logger`, plus
    whatever the request middleware bound (request id, principal kind/role).
    """

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_service_name(service_name),
            _redact_secrets,
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def _add_service_name(service_name: str):
    def processor(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("service", service_name)
        return event_dict

    return processor


def _redact_secrets(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    for key in SECRET_FIELDS.intersection(event_dict):
        event_dict[key] = REDACTED
    return event_dict


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def mask_email(email: str | None) -> str:
    # "student01@nu.edu" -> "s***@nu.edu"
    if not email:
        return ""
    local, sep, domain = email.strip().partition("@")
    if not sep:
        return "***"
    return f"{local[:1]}***@{domain}"


# --- Module Notes -----------------------------------------------------------
# Request-scoped metadata is bound via contextvars in `observability.middleware`.
# Redaction is a backstop; call sites still never pass PINs, OTPs or tokens to a logger.
