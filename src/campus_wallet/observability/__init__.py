"""
campus_wallet.observability

Observability package.

Responsibilities:
- Structured logging setup.
- Request context propagation for log correlation.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Tracing/metrics exporters are not wired in; structured logs are the only signal.
