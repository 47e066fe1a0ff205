"""
campus_wallet.api.routers

HTTP routers for the portal shell.

Responsibilities:
- Health probes, sign-in flow, session, guarded pages and the audit-log feed.
"""

# Package marker.
