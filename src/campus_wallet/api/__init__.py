"""
campus_wallet.api

API package for the campus wallet portal.

Responsibilities:
- FastAPI app factory and router modules.
- API-layer dependency wiring and response view models.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# The API layer stays thin: it feeds requests into AuthFlow/IdentityStore/LogFeed and
# renders their state.
