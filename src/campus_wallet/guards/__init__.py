"""
campus_wallet.guards

Route guard package.

Responsibilities:
- Role -> landing route map.
- Pure guard decisions over an identity snapshot.
- FastAPI dependency + interrupt that turn decisions into responses.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Guards only read the identity store; they never write to it.
