"""
campus_wallet.auth.messages

User-facing strings for the sign-in and PIN recovery flow.

Responsibilities:
- Keep inline error/notice copy in one place so tests and UI agree on it.
- Keep credential errors and transport errors distinct.
"""

from __future__ import annotations

EMAIL_REQUIRED = "Please enter your email address"
EMAIL_INVALID = "Please enter a valid email address"
PIN_REQUIRED = "Please enter your PIN"
PIN_FORMAT = "PIN must be exactly 6 digits"
OTP_REQUIRED = "Please enter the 6-digit code"
OTP_FORMAT = "Code must be exactly 6 digits"
NEW_PIN_REQUIRED = "Please enter a new PIN"
CONFIRM_PIN_REQUIRED = "Please confirm your new PIN"
PIN_MISMATCH = "PINs do not match. Please try again."

# Same text whether the account exists or not.
INVALID_CREDENTIALS = "Incorrect email or PIN. Please try again."
TOO_MANY_ATTEMPTS = "Too many attempts. Please wait a moment and try again."
SERVER_UNAVAILABLE = "We couldn't reach the server. Please try again."
SERVER_ERROR = "Something went wrong on our side. Please try again."
MAINTENANCE = (
    "System is under maintenance. Only system administrators can access the system at this time."
)

OTP_SEND_FAILED = "Failed to send the code. Please try again."
OTP_RESEND_WAIT = "Please wait before requesting another code."
OTP_RESENT = "A new code has been sent to your email."
RESET_FAILED = "Failed to reset PIN. Please try again."
RESET_SUCCESS = "PIN reset successful. Please sign in with your new PIN."
