"""
campus_wallet.db

Local persistence package.

Responsibilities:
- Async engine/session helpers.
- The key-value table backing the durable identity storage.
"""

# Package marker.
