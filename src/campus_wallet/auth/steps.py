"""
campus_wallet.auth.steps

Step types of the sign-in / PIN recovery state machine.

Responsibilities:
- One frozen dataclass per step, carrying only the fields that step owns.
- `FlowStep`: the union the flow engine holds exactly one of.

Primary path:   email -> pin -> success   (or pin -> activation hand-off)
Recovery path:  forgot-email -> forgot-otp -> forgot-newpin -> forgot-confirm -> email
"""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlencode

from campus_wallet.auth.heuristics import UiHint
from campus_wallet.identity.models import Session


@dataclass(frozen=True, slots=True)
class EmailStep:
    name = "email"
    email: str = ""


@dataclass(frozen=True, slots=True)
class PinStep:
    name = "pin"
    email: str
    hint: UiHint
    pin: str = ""


@dataclass(frozen=True, slots=True)
class SuccessStep:
    name = "success"
    session: Session
    redirect_to: str


@dataclass(frozen=True, slots=True)
class ActivationHandoff:
    # Passed verbatim to the activation flow (accept terms, set PIN, verify OTP).
    account_id: str
    account_type: str
    email: str
    full_name: str

    def location(self, activation_route: str) -> str:
        query = urlencode(
            {
                "accountId": self.account_id,
                "accountType": self.account_type,
                "email": self.email,
                "fullName": self.full_name,
            }
        )
        return f"{activation_route}?{query}"


@dataclass(frozen=True, slots=True)
class ActivationStep:
    name = "activation"
    handoff: ActivationHandoff
    redirect_to: str


@dataclass(frozen=True, slots=True)
class ForgotEmailStep:
    name = "forgot-email"
    email: str = ""


@dataclass(frozen=True, slots=True)
class ForgotOtpStep:
    name = "forgot-otp"
    email: str
    otp: str = ""


@dataclass(frozen=True, slots=True)
class ForgotNewPinStep:
    name = "forgot-newpin"
    email: str
    otp: str
    new_pin: str = ""


@dataclass(frozen=True, slots=True)
class ForgotConfirmStep:
    name = "forgot-confirm"
    email: str
    otp: str
    new_pin: str
    confirm_pin: str = ""


FlowStep = (
    EmailStep
    | PinStep
    | SuccessStep
    | ActivationStep
    | ForgotEmailStep
    | ForgotOtpStep
    | ForgotNewPinStep
    | ForgotConfirmStep
)

RECOVERY_STEPS = (ForgotEmailStep, ForgotOtpStep, ForgotNewPinStep, ForgotConfirmStep)
TERMINAL_STEPS = (SuccessStep, ActivationStep)


# --- Module Notes -----------------------------------------------------------
# `name` is a plain class attribute (no annotation), so it is shared by all instances
# and excluded from the dataclass fields and from equality.
