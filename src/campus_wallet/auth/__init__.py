"""
campus_wallet.auth

Sign-in and PIN recovery package.

Responsibilities:
- Step types and the `AuthFlow` state machine.
- Input filters, UI hints and user-facing messages.
- The resend-code cooldown timer.
"""

# Package marker.


# --- Module Notes -----------------------------------------------------------
# Import the concrete modules (`campus_wallet.auth.flow`, ...) directly.
