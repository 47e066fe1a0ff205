"""
campus_wallet.auth.flow

Sign-in and PIN recovery state machine.

Responsibilities:
- Hold exactly one active step and move it forward on valid submissions.
- Call the backend for credential checks, OTP issuance and PIN reset.
- Commit the session into the identity store on successful sign-in (the only write).
- Reject overlapping submissions and drop late responses for abandoned steps.
- Own the resend cooldown timer and stop it on reset/dispose.

Every public method returns the active step; failures end up in `error_message`.
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from campus_wallet.auth import messages
from campus_wallet.auth.cooldown import ResendCooldown
from campus_wallet.auth.heuristics import UiHint, infer_ui_hint
from campus_wallet.auth.inputs import accept_digits, is_email, is_six_digits
from campus_wallet.auth.steps import (
    RECOVERY_STEPS,
    ActivationHandoff,
    ActivationStep,
    EmailStep,
    FlowStep,
    ForgotConfirmStep,
    ForgotEmailStep,
    ForgotNewPinStep,
    ForgotOtpStep,
    PinStep,
    SuccessStep,
)
from campus_wallet.backend.client import WalletApiClient
from campus_wallet.backend.errors import BackendError, BackendRejected, BackendUnavailable
from campus_wallet.backend.models import LoginResponse
from campus_wallet.guards.landing import landing_path
from campus_wallet.identity.models import AuthoritativeRole, PrincipalKind, RoleTag
from campus_wallet.identity.store import IdentityStore
from campus_wallet.observability.logging import get_logger, mask_email
from campus_wallet.settings import Settings

log = get_logger(__name__)


class AuthFlow:
    def __init__(
        self,
        *,
        client: WalletApiClient,
        store: IdentityStore,
        settings: Settings,
        cooldown: ResendCooldown | None = None,
    ) -> None:
        self._client = client
        self._store = store
        self._settings = settings
        self._cooldown = cooldown or ResendCooldown(settings.otp_resend_cooldown_seconds)

        self._step: FlowStep = EmailStep()
        self._busy = False
        # Bumped by every navigation; responses captured under an older epoch are dropped.
        self._epoch = 0
        self.error_message: str | None = None
        self.notice: str | None = None

    @property
    def step(self) -> FlowStep:
        return self._step

    @property
    def is_busy(self) -> bool:
        return self._busy

    @property
    def detected_hint(self) -> UiHint | None:
        return self._step.hint if isinstance(self._step, PinStep) else None

    @property
    def resend_available_in(self) -> int:
        return self._cooldown.remaining

    # Field edits ----------------------------------------------------------

    def set_email(self, value: str) -> FlowStep:
        return self._edit((EmailStep, ForgotEmailStep), "email", value, digits=False)

    def set_pin(self, value: str) -> FlowStep:
        return self._edit((PinStep,), "pin", value, digits=True)

    def set_otp(self, value: str) -> FlowStep:
        return self._edit((ForgotOtpStep,), "otp", value, digits=True)

    def set_new_pin(self, value: str) -> FlowStep:
        return self._edit((ForgotNewPinStep,), "new_pin", value, digits=True)

    def set_confirm_pin(self, value: str) -> FlowStep:
        return self._edit((ForgotConfirmStep,), "confirm_pin", value, digits=True)

    # Primary path ---------------------------------------------------------

    def submit_email(self) -> FlowStep:
        step = self._step
        if not isinstance(step, EmailStep) or self._busy:
            return step

        email = step.email.strip()
        if not email:
            return self._fail(messages.EMAIL_REQUIRED)
        if not is_email(email):
            return self._fail(messages.EMAIL_INVALID)

        hint = infer_ui_hint(email)
        log.info("auth.email_accepted", email=mask_email(email), hint=hint)
        return self._go(PinStep(email=email, hint=hint))

    async def submit_pin(self) -> FlowStep:
        step = self._step
        if not isinstance(step, PinStep) or self._busy:
            return step
        if not step.pin:
            return self._fail(messages.PIN_REQUIRED)
        if not is_six_digits(step.pin):
            return self._fail(messages.PIN_FORMAT)

        epoch = self._begin()
        try:
            return await self._authenticate(step, epoch)
        finally:
            self._end(epoch)

    def change_email(self) -> FlowStep:
        step = self._step
        if isinstance(step, PinStep):
            self._invalidate()
            self._go(EmailStep(email=step.email))
        return self._step

    # Recovery path --------------------------------------------------------

    def start_recovery(self) -> FlowStep:
        step = self._step
        if isinstance(step, (EmailStep, PinStep)):
            self._invalidate()
            self.notice = None
            self._go(ForgotEmailStep(email=step.email))
        return self._step

    def back_to_login(self) -> FlowStep:
        if isinstance(self._step, RECOVERY_STEPS):
            self.reset()
        return self._step

    async def request_otp(self) -> FlowStep:
        step = self._step
        if not isinstance(step, ForgotEmailStep) or self._busy:
            return step

        email = step.email.strip()
        if not email:
            return self._fail(messages.EMAIL_REQUIRED)
        if not is_email(email):
            return self._fail(messages.EMAIL_INVALID)

        epoch = self._begin()
        try:
            try:
                await self._client.request_pin_reset(email=email)
            except BackendError as e:
                if self._stale(epoch, "forgot-email"):
                    return self._step
                log.info("auth.otp_request_failed", email=mask_email(email), error=str(e))
                return self._fail(_recovery_message(e, messages.OTP_SEND_FAILED))
            if self._stale(epoch, "forgot-email"):
                return self._step

            log.info("auth.otp_issued", email=mask_email(email))
            self._cooldown.start()
            return self._go(ForgotOtpStep(email=email))
        finally:
            self._end(epoch)

    async def resend_otp(self) -> FlowStep:
        step = self._step
        if not isinstance(step, ForgotOtpStep) or self._busy:
            return step
        if not self._cooldown.available:
            return self._fail(messages.OTP_RESEND_WAIT)

        epoch = self._begin()
        try:
            try:
                await self._client.request_pin_reset(email=step.email)
            except BackendError as e:
                if self._stale(epoch, "forgot-otp"):
                    return self._step
                return self._fail(_recovery_message(e, messages.OTP_SEND_FAILED))
            if self._stale(epoch, "forgot-otp"):
                return self._step

            log.info("auth.otp_resent", email=mask_email(step.email))
            self._cooldown.start()
            self._go(replace(step, otp=""))
            self.notice = messages.OTP_RESENT
            return self._step
        finally:
            self._end(epoch)

    def submit_otp(self) -> FlowStep:
        step = self._step
        if not isinstance(step, ForgotOtpStep) or self._busy:
            return step
        if not step.otp:
            return self._fail(messages.OTP_REQUIRED)
        if not is_six_digits(step.otp):
            return self._fail(messages.OTP_FORMAT)

        # Format only: the backend checks the code when the new PIN is submitted.
        self._cooldown.cancel()
        return self._go(ForgotNewPinStep(email=step.email, otp=step.otp))

    def submit_new_pin(self) -> FlowStep:
        step = self._step
        if not isinstance(step, ForgotNewPinStep) or self._busy:
            return step
        if not step.new_pin:
            return self._fail(messages.NEW_PIN_REQUIRED)
        if not is_six_digits(step.new_pin):
            return self._fail(messages.PIN_FORMAT)
        return self._go(ForgotConfirmStep(email=step.email, otp=step.otp, new_pin=step.new_pin))

    async def submit_confirm_pin(self) -> FlowStep:
        step = self._step
        if not isinstance(step, ForgotConfirmStep) or self._busy:
            return step
        if not step.confirm_pin:
            return self._fail(messages.CONFIRM_PIN_REQUIRED)
        if not is_six_digits(step.confirm_pin):
            return self._fail(messages.PIN_FORMAT)
        if step.confirm_pin != step.new_pin:
            return self._fail(messages.PIN_MISMATCH)

        epoch = self._begin()
        try:
            try:
                await self._client.reset_pin(email=step.email, otp=step.otp, new_pin=step.new_pin)
            except BackendError as e:
                if self._stale(epoch, "forgot-confirm"):
                    return self._step
                log.info("auth.pin_reset_failed", email=mask_email(step.email), error=str(e))
                return self._fail(_recovery_message(e, messages.RESET_FAILED))
            if self._stale(epoch, "forgot-confirm"):
                return self._step

            log.info("auth.pin_reset", email=mask_email(step.email))
            self.reset()
            self.notice = messages.RESET_SUCCESS
            return self._step
        finally:
            self._end(epoch)

    # Lifecycle ------------------------------------------------------------

    def reset(self) -> FlowStep:
        self._invalidate()
        self._cooldown.cancel()
        self._step = EmailStep()
        self.error_message = None
        self.notice = None
        return self._step

    def dispose(self) -> None:
        self.reset()
        log.debug("auth.flow_disposed")

    # Internals ------------------------------------------------------------

    async def _authenticate(self, step: PinStep, epoch: int) -> FlowStep:
        try:
            response = await self._client.login(
                email=step.email, pin=step.pin, path=step.hint.login_path(self._settings)
            )
        except BackendRejected as e:
            if self._stale(epoch, "pin"):
                return self._step
            log.info("auth.login_rejected", status=e.status_code, hint=step.hint)
            if e.status_code == 429:
                return self._fail(messages.TOO_MANY_ATTEMPTS)
            return self._fail(messages.INVALID_CREDENTIALS)
        except BackendUnavailable as e:
            if self._stale(epoch, "pin"):
                return self._step
            log.warning("auth.login_unavailable", error=str(e))
            return self._fail(messages.SERVER_UNAVAILABLE)
        if self._stale(epoch, "pin"):
            return self._step

        if response.requires_activation:
            return self._hand_off(step, response)
        if not response.token:
            log.error("auth.login_missing_token")
            return self._fail(messages.SERVER_ERROR)

        # The backend's role decides the namespace; the email heuristic never does.
        role = AuthoritativeRole.from_server(response.role)
        if role.role_tag is not RoleTag.sysad and await self._maintenance_active():
            if self._stale(epoch, "pin"):
                return self._step
            log.info("auth.login_blocked_maintenance", role_tag=role.role_tag)
            return self._fail(messages.MAINTENANCE)
        if self._stale(epoch, "pin"):
            return self._step

        data: dict[str, Any] = response.principal_data()
        data.setdefault("email", step.email)
        if role.kind is PrincipalKind.user:
            data.setdefault("isActive", True)
        try:
            session = await self._store.commit(data, response.token, role=role)
        except ValueError as e:
            log.error("auth.commit_rejected", error=str(e))
            return self._fail(messages.SERVER_ERROR)

        # Committed sessions are final: success replaces whatever step is active now.
        self._cooldown.cancel()
        redirect_to = landing_path(session.principal, self._settings)
        log.info(
            "auth.login_succeeded",
            kind=session.principal.kind,
            role_tag=session.principal.role_tag,
            hint=step.hint,
            redirect_to=redirect_to,
        )
        return self._go(SuccessStep(session=session, redirect_to=redirect_to))

    def _hand_off(self, step: PinStep, response: LoginResponse) -> FlowStep:
        if not response.account_id:
            log.error("auth.activation_missing_account_id")
            return self._fail(messages.SERVER_ERROR)

        handoff = ActivationHandoff(
            account_id=response.account_id,
            account_type=response.account_type or step.hint.value,
            email=response.email or step.email,
            full_name=response.full_name or "",
        )
        log.info("auth.activation_required", account_type=handoff.account_type)
        return self._go(
            ActivationStep(
                handoff=handoff,
                redirect_to=handoff.location(self._settings.activation_route),
            )
        )

    async def _maintenance_active(self) -> bool:
        if not self._settings.maintenance_check_enabled:
            return False
        try:
            status = await self._client.maintenance_status()
        except BackendError as e:
            log.warning("auth.maintenance_probe_failed", error=str(e))
            return False
        return status.maintenance_mode

    def _edit(
        self,
        step_types: tuple[type, ...],
        field: str,
        value: str,
        *,
        digits: bool,
    ) -> FlowStep:
        step = self._step
        if not isinstance(step, step_types) or self._busy:
            return step
        current = getattr(step, field)
        updated = accept_digits(current, value) if digits else value
        if updated != current:
            self._step = replace(step, **{field: updated})
            self.error_message = None
        return self._step

    def _go(self, step: FlowStep) -> FlowStep:
        self._step = step
        self.error_message = None
        return step

    def _fail(self, message: str) -> FlowStep:
        self.error_message = message
        return self._step

    def _begin(self) -> int:
        self._busy = True
        self.error_message = None
        self.notice = None
        return self._epoch

    def _end(self, epoch: int) -> None:
        if epoch == self._epoch:
            self._busy = False

    def _invalidate(self) -> None:
        self._epoch += 1
        self._busy = False

    def _stale(self, epoch: int, step_name: str) -> bool:
        if epoch == self._epoch:
            return False
        log.info("auth.stale_response_dropped", step=step_name)
        return True


def _recovery_message(error: BackendError, default: str) -> str:
    if isinstance(error, BackendRejected):
        if error.status_code == 429:
            return messages.TOO_MANY_ATTEMPTS
        return error.message or default
    return messages.SERVER_UNAVAILABLE


# --- Module Notes -----------------------------------------------------------
# The flow is single-writer by construction: one instance per portal, driven from the
# event loop. `_busy` disables submissions; `_epoch` handles navigation while awaiting.
