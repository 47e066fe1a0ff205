"""
campus_wallet.backend

Wallet backend client package.

Responsibilities:
- HTTP boundary to the wallet REST backend (credential checks, PIN recovery, event logs).
- Typed responses and a small error taxonomy for callers.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Core components depend on this boundary, never on httpx directly.
