"""
Phone MFA challenge/response lifecycle.

    idle -> sending -> codeSent -> verifying -> verified
                          ^            |
                          +------------+  (rejected code)

A failed send lands in `failed` and can be retried. Changing the phone or the
country calls invalidate(), which drops back to idle from any state.
"""
import enum
from typing import Optional

from app.clients.mfa import MfaApi
from app.core import errors
from app.core.countries import Country
from app.observability.logging import log
from app.settings import settings
from app.utils.text import digits_only
from app.utils.timers import Countdown


class VerificationStatus(str, enum.Enum):
    IDLE = "idle"
    SENDING = "sending"
    CODE_SENT = "codeSent"
    VERIFYING = "verifying"
    VERIFIED = "verified"
    FAILED = "failed"


class VerificationSession:
    def __init__(self, api: MfaApi, *, cooldown_sec: Optional[int] = None, code_length: Optional[int] = None,
                 tick: float = 1.0):
        self.api = api
        self.cooldown_sec = settings.MFA_RESEND_COOLDOWN_SEC if cooldown_sec is None else int(cooldown_sec)
        self.code_length = settings.MFA_CODE_LENGTH if code_length is None else int(code_length)
        self.status = VerificationStatus.IDLE
        self.error: str = ""
        self.code: str = ""
        self.cooldown = Countdown(tick=tick)
        # Bumped by invalidate(); responses for an older generation are dropped.
        self._generation = 0

    @property
    def verified(self) -> bool:
        return self.status is VerificationStatus.VERIFIED

    @property
    def code_requested(self) -> bool:
        return self.status in (VerificationStatus.CODE_SENT, VerificationStatus.VERIFYING)

    @property
    def busy(self) -> bool:
        return self.status in (VerificationStatus.SENDING, VerificationStatus.VERIFYING)

    async def send_code(self, country: Country, phone: str, email: str) -> bool:
        return await self._send(country, phone, email, resend=False)

    async def resend(self, country: Country, phone: str, email: str) -> bool:
        if self.cooldown.running:
            self.error = f"Please wait {self.cooldown.remaining}s before requesting a new code"
            return False
        self.code = ""
        return await self._send(country, phone, email, resend=True)

    async def _send(self, country: Country, phone: str, email: str, *, resend: bool) -> bool:
        if self.verified or self.busy:
            return False
        if not country.is_valid_phone(phone):
            self.error = "Please enter a valid phone number"
            return False

        generation = self._generation
        self.status = VerificationStatus.SENDING
        self.error = ""
        target = country.international(phone)
        try:
            if resend:
                await self.api.resend_verification_code(target, email)
            else:
                await self.api.send_verification_code(target, email)
        except errors.CollaboratorError as e:
            if generation == self._generation:
                self.status = VerificationStatus.FAILED
                self.error = e.server_message or errors.CODE_SEND_FAILED
            log(event="mfa_send_rejected", statusCode=e.status_code, resend=resend)
            return False
        except Exception as e:
            if generation == self._generation:
                self.status = VerificationStatus.FAILED
                self.error = errors.CODE_SEND_ERROR
            log(event="mfa_send_error", errorType=type(e).__name__, error=str(e)[:300], resend=resend)
            return False

        if generation != self._generation:
            log(event="mfa_send_stale_ignored")
            return False

        self.status = VerificationStatus.CODE_SENT
        self.cooldown.start(self.cooldown_sec)
        log(event="mfa_code_sent", resend=resend, country=country.code)
        return True

    def enter_code(self, code: str) -> bool:
        """Store typed digits; True once the code is complete and should be submitted."""
        self.code = digits_only(code)[: self.code_length]
        return len(self.code) == self.code_length

    async def submit_code(self, email: str, code: Optional[str] = None) -> bool:
        if code is not None:
            self.enter_code(code)
        if self.status is not VerificationStatus.CODE_SENT:
            return False
        if len(self.code) != self.code_length:
            self.error = f"Enter the {self.code_length}-digit code"
            return False

        generation = self._generation
        self.status = VerificationStatus.VERIFYING
        self.error = ""
        try:
            await self.api.verify_code(self.code, email)
        except errors.CollaboratorError as e:
            if generation == self._generation:
                self.status = VerificationStatus.CODE_SENT
                self.code = ""
                self.error = e.server_message or errors.CODE_INVALID
            log(event="mfa_code_rejected", statusCode=e.status_code)
            return False
        except Exception as e:
            if generation == self._generation:
                self.status = VerificationStatus.CODE_SENT
                self.code = ""
                self.error = errors.CODE_VERIFY_ERROR
            log(event="mfa_verify_error", errorType=type(e).__name__, error=str(e)[:300])
            return False

        if generation != self._generation:
            return False

        self.status = VerificationStatus.VERIFIED
        self.code = ""
        self.cooldown.cancel()
        log(event="mfa_verified")
        return True

    def invalidate(self) -> None:
        if self.status is not VerificationStatus.IDLE:
            log(event="mfa_invalidated", previous=self.status.value)
        self._generation += 1
        self.status = VerificationStatus.IDLE
        self.error = ""
        self.code = ""
        self.cooldown.cancel()

    def close(self) -> None:
        self.cooldown.cancel()

    def as_dict(self) -> dict:
        return {
            "status": self.status.value,
            "error": self.error,
            "codeLength": len(self.code),
            "resendCooldown": self.cooldown.remaining,
            "canResend": self.code_requested and not self.cooldown.running and not self.busy,
        }
