"""
campus_wallet.logs

Department-scoped audit log package.

Responsibilities:
- EventRecord model over the shared backend feed.
- LogVisibilityPolicy predicate groups (which admin sees which record).
- Feed querying: search, filters, sort and pagination on top of the visible subset.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Visibility is decided here, in the portal; the backend feed is shared by all departments.
