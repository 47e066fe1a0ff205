"""
campus_wallet.api.routers.auth

Sign-in and PIN recovery endpoints.

Responsibilities:
- Feed field values into the process-wide AuthFlow and submit the active step.
- Return a `FlowView` of the active step; secrets (PIN, OTP, token) are never echoed.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from campus_wallet.api.deps import auth_flow_from_app
from campus_wallet.auth.flow import AuthFlow
from campus_wallet.auth.steps import (
    ActivationStep,
    FlowStep,
    ForgotConfirmStep,
    ForgotNewPinStep,
    ForgotOtpStep,
    PinStep,
    SuccessStep,
)

router = APIRouter(prefix="/v1/auth", tags=["auth"])


class EmailBody(BaseModel):
    email: str = Field(default="", max_length=254)


class SecretBody(BaseModel):
    # PIN or OTP; filtered to digits by the flow.
    value: str = Field(default="", max_length=64)


class FlowView(BaseModel):
    step: str
    email: str | None = None
    hint: str | None = None
    portal_title: str | None = None
    error: str | None = None
    notice: str | None = None
    busy: bool = False
    resend_available_in: int = 0
    entered_digits: int = 0
    redirect_to: str | None = None
    activation: dict[str, Any] | None = None
    principal_kind: str | None = None
    role_tag: str | None = None


def flow_view(flow: AuthFlow) -> FlowView:
    step = flow.step
    view = FlowView(
        step=step.name,
        email=getattr(step, "email", None),
        error=flow.error_message,
        notice=flow.notice,
        busy=flow.is_busy,
        entered_digits=_entered_digits(step),
    )
    if isinstance(step, PinStep):
        view.hint = step.hint.value
        view.portal_title = step.hint.portal_title
    if isinstance(step, ForgotOtpStep):
        view.resend_available_in = flow.resend_available_in
    if isinstance(step, SuccessStep):
        principal = step.session.principal
        view.redirect_to = step.redirect_to
        view.email = principal.email
        view.principal_kind = principal.kind.value
        view.role_tag = principal.role_tag.value if principal.role_tag else None
    if isinstance(step, ActivationStep):
        handoff = step.handoff
        view.redirect_to = step.redirect_to
        view.email = handoff.email
        view.activation = {
            "accountId": handoff.account_id,
            "accountType": handoff.account_type,
            "email": handoff.email,
            "fullName": handoff.full_name,
        }
    return view


def _entered_digits(step: FlowStep) -> int:
    if isinstance(step, PinStep):
        return len(step.pin)
    if isinstance(step, ForgotOtpStep):
        return len(step.otp)
    if isinstance(step, ForgotNewPinStep):
        return len(step.new_pin)
    if isinstance(step, ForgotConfirmStep):
        return len(step.confirm_pin)
    return 0


@router.get("", response_model=FlowView)
async def get_flow(flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    return flow_view(flow)


@router.post("/email", response_model=FlowView)
async def submit_email(body: EmailBody, flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    flow.set_email(body.email)
    flow.submit_email()
    return flow_view(flow)


@router.post("/pin", response_model=FlowView)
async def submit_pin(body: SecretBody, flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    flow.set_pin(body.value)
    await flow.submit_pin()
    return flow_view(flow)


@router.post("/change-email", response_model=FlowView)
async def change_email(flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    flow.change_email()
    return flow_view(flow)


@router.post("/forgot", response_model=FlowView)
async def start_recovery(flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    flow.start_recovery()
    return flow_view(flow)


@router.post("/forgot/email", response_model=FlowView)
async def request_otp(body: EmailBody, flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    flow.set_email(body.email)
    await flow.request_otp()
    return flow_view(flow)


@router.post("/forgot/resend", response_model=FlowView)
async def resend_otp(flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    await flow.resend_otp()
    return flow_view(flow)


@router.post("/forgot/otp", response_model=FlowView)
async def submit_otp(body: SecretBody, flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    flow.set_otp(body.value)
    flow.submit_otp()
    return flow_view(flow)


@router.post("/forgot/new-pin", response_model=FlowView)
async def submit_new_pin(body: SecretBody, flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    flow.set_new_pin(body.value)
    flow.submit_new_pin()
    return flow_view(flow)


@router.post("/forgot/confirm", response_model=FlowView)
async def submit_confirm_pin(
    body: SecretBody, flow: AuthFlow = Depends(auth_flow_from_app)
) -> FlowView:
    flow.set_confirm_pin(body.value)
    await flow.submit_confirm_pin()
    return flow_view(flow)


@router.post("/back", response_model=FlowView)
async def back_to_login(flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    flow.back_to_login()
    return flow_view(flow)


@router.post("/reset", response_model=FlowView)
async def reset_flow(flow: AuthFlow = Depends(auth_flow_from_app)) -> FlowView:
    flow.reset()
    return flow_view(flow)


# --- Module Notes -----------------------------------------------------------
# Each POST is "type the value, then press the button": the value goes through the same
# digit filter a keystroke would, so "12a456" never reaches the PIN field.
