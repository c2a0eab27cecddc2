"""
Checkout wizard step controller.

Steps run strictly forward: PERSONAL -> ACCOUNT -> PLAN -> REVIEW -> PAYMENT.
Allowed backward moves are listed in BACK_TARGETS. Each forward move is
validate -> call collaborator -> transition, and every failure becomes a
notification while the wizard stays where it is.

Results of async work are only applied if the step epoch they started in is
still current, so a late response for a step the user already left is
dropped rather than acted on.
"""
import enum
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from app.clients.checkout_api import CheckoutApi
from app.clients.mfa import MfaApi
from app.clients.zip_lookup import ZipLookupApi
from app.core import errors
from app.core.cart import Cart, review_summary
from app.core.checkout_session import CheckoutSessionManager
from app.core.countries import Country, get_country
from app.core.notifications import NotificationQueue
from app.core.progress import PAYMENT_STAGES, PLAN_STAGES, StagedProgress, run_with_progress
from app.core.validation import card_errors, check_password, detect_card_brand, is_valid_email, PasswordChecks
from app.core.verification import VerificationSession
from app.observability.logging import log
from app.settings import settings
from app.store.models import FormRecord, PaymentRecord, REQUIRED_PERSONAL_FIELDS
from app.store.session_repo import CheckoutIdStore
from app.utils.text import digits_only, is_blank
from app.utils.timers import Debouncer, TaskGroup, Timer


class Step(enum.IntEnum):
    PERSONAL = 1
    ACCOUNT = 2
    PLAN = 3
    REVIEW = 4
    PAYMENT = 5


STEP_INFO = {
    Step.PERSONAL: ("Personal Info", "Your basic information"),
    Step.ACCOUNT: ("Account", "Create your account"),
    Step.PLAN: ("Plan", "Plan association"),
    Step.REVIEW: ("Review", "Review your information"),
    Step.PAYMENT: ("Payment", "Payment information"),
}

BACK_TARGETS = {
    Step.ACCOUNT: Step.PERSONAL,
    Step.PLAN: Step.ACCOUNT,
    Step.REVIEW: Step.ACCOUNT,
    Step.PAYMENT: Step.REVIEW,
}


class PrimaryAction(str, enum.Enum):
    """The Personal step's single button: verify, then submit the code, then continue."""
    SEND_CODE = "sendCode"
    SUBMIT_CODE = "submitCode"
    CONTINUE = "continue"


class EmailStatus(str, enum.Enum):
    UNKNOWN = "unknown"
    INVALID = "invalid"
    PENDING = "pending"
    AVAILABLE = "available"
    TAKEN = "taken"
    ERROR = "error"


class PlanStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    EMPTY_CART = "emptyCart"
    SUCCESS = "success"
    ERROR = "error"


class ReviewStatus(str, enum.Enum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"


class PaymentStatus(str, enum.Enum):
    EDITING = "editing"
    PROCESSING = "processing"
    CONFIRMED = "confirmed"
    FAILED = "failed"


PERSONAL_FIELDS = (
    "firstName", "lastName", "email", "phone", "countryCode",
    "zipCode", "state", "city", "street", "additional",
)
ACCOUNT_FIELDS = ("password", "confirmPassword")
PAYMENT_FIELDS = ("cardHolderName", "cardNumber", "expiry", "cvv", "termsAccepted")


@dataclass
class Collaborators:
    checkout: CheckoutApi
    mfa: MfaApi
    zip_lookup: ZipLookupApi

    @classmethod
    def from_settings(cls) -> "Collaborators":
        return cls(checkout=CheckoutApi(), mfa=MfaApi(), zip_lookup=ZipLookupApi())

    async def aclose(self) -> None:
        for api in (self.checkout, self.mfa, self.zip_lookup):
            try:
                await api.aclose()
            except Exception as e:
                log(event="collaborator_close_failed", api=type(api).__name__, errorType=type(e).__name__)


@dataclass
class WizardTimings:
    email_debounce: float
    mfa_cooldown: int
    plan_stage_delay: float
    plan_advance_delay: float
    payment_stage_delay: float
    redirect_delay: float
    notification_ttl: float
    countdown_tick: float = 1.0

    @classmethod
    def from_settings(cls) -> "WizardTimings":
        return cls(
            email_debounce=settings.EMAIL_CHECK_DEBOUNCE_SEC,
            mfa_cooldown=settings.MFA_RESEND_COOLDOWN_SEC,
            plan_stage_delay=settings.PLAN_STAGE_DELAY_SEC,
            plan_advance_delay=settings.PLAN_ADVANCE_DELAY_SEC,
            payment_stage_delay=settings.PAYMENT_STAGE_DELAY_SEC,
            redirect_delay=settings.PAYMENT_REDIRECT_DELAY_SEC,
            notification_ttl=settings.NOTIFICATION_TTL_SEC,
        )


class WizardController:
    def __init__(
        self,
        client_id: str,
        apis: Collaborators,
        store: CheckoutIdStore,
        *,
        timings: Optional[WizardTimings] = None,
        on_redirect: Optional[Callable[[str], None]] = None,
    ):
        self.client_id = client_id
        self.apis = apis
        self.timings = timings or WizardTimings.from_settings()
        self.on_redirect = on_redirect

        self.step = Step.PERSONAL
        self.form = FormRecord()
        self.payment = PaymentRecord()
        self.session = CheckoutSessionManager(apis.checkout, store)
        self.verification = VerificationSession(
            apis.mfa, cooldown_sec=self.timings.mfa_cooldown, tick=self.timings.countdown_tick
        )
        self.notifications = NotificationQueue(default_ttl=self.timings.notification_ttl, owner=client_id)

        self.email_status = EmailStatus.UNKNOWN
        self.plan_status = PlanStatus.IDLE
        self.plan_error = ""
        self.plan_progress = StagedProgress(PLAN_STAGES, self.timings.plan_stage_delay)
        self.review: Optional[dict] = None
        self.review_status = ReviewStatus.IDLE
        self.review_error = ""
        self.payment_status = PaymentStatus.EDITING
        self.payment_error = ""
        self.payment_progress = StagedProgress(PAYMENT_STAGES, self.timings.payment_stage_delay)
        self.redirect: Optional[dict] = None

        self._epoch = 0
        self._navigating = False
        self._closed = False
        self._restore_attempted = False
        self._tasks = TaskGroup(name=f"wizard:{client_id}")
        self._timers: List[Timer] = []
        self._email_check = Debouncer(self.timings.email_debounce, self._check_email, self._tasks)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    async def start(self) -> bool:
        """Make sure a checkout session id exists; safe to call on every mount."""
        try:
            checkout_id = await self.session.ensure()
        except Exception as e:
            log(event="wizard_start_failed", clientId=self.client_id, kind=errors.classify(e), error=str(e)[:300])
            self.notifications.error("Unable to start checkout. Please refresh the page and try again.")
            return False

        if self.session.restored and settings.RESTORE_SAVED_CHECKOUT and not self._restore_attempted:
            self._restore_attempted = True
            await self._restore_saved_checkout(checkout_id)
        return True

    @property
    def busy(self) -> bool:
        return self._navigating

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._email_check.cancel()
        for t in self._timers:
            t.cancel()
        self._timers.clear()
        self.verification.close()
        self.notifications.close()
        await self._tasks.drain()
        await self.apis.aclose()
        log(event="wizard_closed", clientId=self.client_id, step=int(self.step))

    def _enter(self, step: Step) -> None:
        previous = self.step
        self.step = step
        self._epoch += 1
        log(event="wizard_step", clientId=self.client_id, previous=int(previous), step=int(step))

        if step is Step.PLAN:
            self.plan_status = PlanStatus.IDLE
            self.plan_error = ""
            self._tasks.spawn(self.run_plan())
        elif step is Step.REVIEW:
            self._tasks.spawn(self.load_review())
        elif step is Step.PAYMENT and self.payment_status is PaymentStatus.FAILED:
            self.payment_status = PaymentStatus.EDITING

    def _is_current(self, epoch: int) -> bool:
        return not self._closed and self._epoch == epoch

    def _schedule(self, delay: float, callback: Callable[[], None]) -> Timer:
        timer = Timer(delay, callback)
        self._timers = [t for t in self._timers if t.active]
        self._timers.append(timer)
        return timer.start()

    @asynccontextmanager
    async def _in_flight(self, action: str):
        if self._navigating:
            log(event="wizard_navigation_rejected", clientId=self.client_id, action=action, step=int(self.step))
            raise errors.StepBusy(f"{action} already in progress")
        self._navigating = True
        try:
            yield
        finally:
            self._navigating = False

    def _require_step(self, step: Step) -> None:
        if self.step is not step:
            raise errors.InvalidTransition(f"Not on the {step.name.lower()} step")

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------
    async def next(self) -> bool:
        if self.step is Step.PERSONAL:
            return await self.continue_personal()
        if self.step is Step.ACCOUNT:
            return await self.submit_account()
        if self.step is Step.PLAN:
            if self.plan_status is not PlanStatus.SUCCESS:
                raise errors.InvalidTransition("Plan association has not completed")
            self._enter(Step.REVIEW)
            return True
        if self.step is Step.REVIEW:
            self._enter(Step.PAYMENT)
            return True
        return await self.submit_payment()

    def back(self) -> Step:
        target = BACK_TARGETS.get(self.step)
        if target is None:
            raise errors.InvalidTransition("Already on the first step")
        if self.step is Step.PLAN and self.plan_status in (PlanStatus.LOADING, PlanStatus.SUCCESS):
            raise errors.InvalidTransition("Plan association is in progress")
        if self.step is Step.PAYMENT and self.payment_status in (PaymentStatus.PROCESSING, PaymentStatus.CONFIRMED):
            raise errors.InvalidTransition("Payment already submitted")
        if self.step is Step.REVIEW:
            self.form.clear_credentials()
        self._enter(target)
        return target

    # ------------------------------------------------------------------
    # Personal
    # ------------------------------------------------------------------
    @property
    def country(self) -> Country:
        return get_country(self.form.countryCode)

    @property
    def primary_action(self) -> PrimaryAction:
        if self.verification.verified:
            return PrimaryAction.CONTINUE
        if self.verification.code_requested:
            return PrimaryAction.SUBMIT_CODE
        return PrimaryAction.SEND_CODE

    def update_personal(self, **changes) -> dict:
        self._require_step(Step.PERSONAL)
        unknown = set(changes) - set(PERSONAL_FIELDS)
        if unknown:
            raise errors.ValidationFailed("Unknown fields", {k: "Unknown field" for k in sorted(unknown)})

        if "countryCode" in changes and changes["countryCode"] is not None:
            try:
                changes["countryCode"] = get_country(changes["countryCode"]).code
            except KeyError:
                raise errors.ValidationFailed("Unsupported country", {"countryCode": "Unsupported country"})

        changed = self.form.patch(**changes)

        if "countryCode" in changed:
            # A new country means a new number unless one came with it.
            if "phone" not in changed:
                self.form.phone = ""
            self._reset_verification()
        elif "phone" in changed:
            self._reset_verification()

        if "email" in changed:
            self._schedule_email_check()

        if "zipCode" in changed or ("countryCode" in changed and self.form.zipCode):
            self._maybe_lookup_zip()

        return changed

    def _reset_verification(self) -> None:
        self.verification.invalidate()
        self.form.mfaVerified = False

    def _schedule_email_check(self) -> None:
        email = self.form.email.strip()
        if not is_valid_email(email):
            self._email_check.cancel()
            self.email_status = EmailStatus.INVALID if email else EmailStatus.UNKNOWN
            return
        self.email_status = EmailStatus.PENDING
        self._email_check.trigger(email)

    async def _check_email(self, email: str) -> None:
        try:
            available = await self.apis.checkout.check_email_availability(email)
        except Exception as e:
            log(event="email_check_failed", clientId=self.client_id, kind=errors.classify(e))
            if self.form.email.strip() == email:
                self.email_status = EmailStatus.ERROR
            return
        if self.form.email.strip() != email:
            # Superseded by a later edit.
            return
        self.email_status = EmailStatus.AVAILABLE if available else EmailStatus.TAKEN
        if not available:
            self.notifications.warning("This email is already registered. Please use another email or sign in.")

    def _maybe_lookup_zip(self) -> None:
        if self.form.countryCode != "US":
            return
        z = digits_only(self.form.zipCode)
        if len(z) != 5 or z != self.form.zipCode.strip():
            return
        self._tasks.spawn(self._lookup_zip(self.form.zipCode))

    async def _lookup_zip(self, zip_code: str) -> None:
        try:
            result = await self.apis.zip_lookup.lookup(zip_code)
        except Exception as e:
            log(event="zip_lookup_failed", clientId=self.client_id, kind=errors.classify(e))
            return
        if result is None or self.form.zipCode != zip_code or self.form.countryCode != "US":
            return
        self.form.state, self.form.city = result

    def personal_errors(self) -> Dict[str, str]:
        """Everything still blocking the Personal step, keyed by field."""
        out = {}
        for name in REQUIRED_PERSONAL_FIELDS:
            if is_blank(getattr(self.form, name)):
                out[name] = "This field is required"
        if "email" not in out:
            if not is_valid_email(self.form.email):
                out["email"] = "Please enter a valid email address"
            elif self.email_status is EmailStatus.TAKEN:
                out["email"] = "This email is already registered"
            elif self.email_status is not EmailStatus.AVAILABLE:
                out["email"] = "Checking email availability..."
        if "phone" not in out:
            if not self.country.is_valid_phone(self.form.phone):
                out["phone"] = "Please enter a valid phone number"
            elif not self.verification.verified:
                out["phone"] = "Please verify your phone number"
        return out

    async def primary(self) -> bool:
        """The three-mode button: never lets the user skip phone verification."""
        action = self.primary_action
        if action is PrimaryAction.SEND_CODE:
            return await self.send_code()
        if action is PrimaryAction.SUBMIT_CODE:
            return await self.submit_code()
        return await self.continue_personal()

    async def send_code(self) -> bool:
        self._require_step(Step.PERSONAL)
        if not is_valid_email(self.form.email):
            self.notifications.error("Please enter a valid email before verifying your phone.")
            return False
        ok = await self.verification.send_code(self.country, self.form.phone, self.form.email.strip())
        self._report_verification(ok, "Verification code sent")
        return ok

    async def resend_code(self) -> bool:
        self._require_step(Step.PERSONAL)
        ok = await self.verification.resend(self.country, self.form.phone, self.form.email.strip())
        self._report_verification(ok, "A new verification code was sent")
        return ok

    async def enter_code(self, code: str) -> bool:
        """Typing the last digit submits; no separate action needed."""
        self._require_step(Step.PERSONAL)
        if self.verification.enter_code(code):
            return await self.submit_code()
        return False

    async def submit_code(self) -> bool:
        self._require_step(Step.PERSONAL)
        ok = await self.verification.submit_code(self.form.email.strip())
        self.form.mfaVerified = self.verification.verified
        self._report_verification(ok, "Phone number verified")
        return ok

    def _report_verification(self, ok: bool, success_message: str) -> None:
        if ok:
            self.notifications.success(success_message)
        elif self.verification.error:
            self.notifications.error(self.verification.error)

    async def continue_personal(self) -> bool:
        self._require_step(Step.PERSONAL)
        if self.email_status is EmailStatus.ERROR:
            self._schedule_email_check()
        blockers = self.personal_errors()
        if blockers:
            log(event="personal_blocked", clientId=self.client_id, fields=sorted(blockers))
            self.notifications.error("Please complete all required fields.")
            return False
        self._enter(Step.ACCOUNT)
        return True

    async def _restore_saved_checkout(self, checkout_id: str) -> None:
        try:
            saved = await self.apis.checkout.get_checkout(checkout_id)
        except Exception as e:
            log(event="checkout_restore_failed", clientId=self.client_id, kind=errors.classify(e))
            return
        if not saved:
            return

        first, _, last = str(saved.get("name") or "").strip().partition(" ")
        restored = {
            "firstName": first,
            "lastName": last.strip(),
            "zipCode": saved.get("zipcode") or "",
            "state": saved.get("state") or "",
            "city": saved.get("city") or "",
            "street": saved.get("street") or "",
            "additional": saved.get("additional") or "",
        }
        phone = str(saved.get("phoneNumber") or "")
        country = self.country
        if phone.startswith(country.prefix):
            restored["phone"] = phone[len(country.prefix):]

        for k, v in restored.items():
            if v and is_blank(getattr(self.form, k)):
                setattr(self.form, k, v)
        if saved.get("email") and not self.form.email:
            self.form.set_email(str(saved["email"]))
            self._schedule_email_check()
        log(event="checkout_restored", clientId=self.client_id, fields=sorted(k for k, v in restored.items() if v))

    # ------------------------------------------------------------------
    # Account
    # ------------------------------------------------------------------
    @property
    def password_checks(self) -> PasswordChecks:
        return check_password(self.form.password, self.form.confirmPassword)

    def update_account(self, **changes) -> PasswordChecks:
        self._require_step(Step.ACCOUNT)
        unknown = set(changes) - set(ACCOUNT_FIELDS)
        if unknown:
            raise errors.ValidationFailed("Unknown fields", {k: "Unknown field" for k in sorted(unknown)})
        self.form.patch(**changes)
        return self.password_checks

    def _checkout_payload(self, checkout_id: str) -> dict:
        f = self.form
        return {
            "checkout_id": checkout_id,
            "name": f.full_name,
            "email": f.email.strip(),
            "phoneNumber": self.country.international(f.phone),
            "zipcode": f.zipCode,
            "state": f.state,
            "city": f.city,
            "street": f.street,
            "additional": f.additional,
            "username": f.username.strip(),
            "passphrase": f.password,
        }

    async def submit_account(self) -> bool:
        self._require_step(Step.ACCOUNT)
        if not self.password_checks.all_ok:
            self.notifications.error("Your passphrase does not meet the requirements.")
            return False

        async with self._in_flight("account"):
            epoch = self._epoch
            try:
                checkout_id = self.session.require()
                await self.apis.checkout.create_or_update_checkout(self._checkout_payload(checkout_id))
            except Exception as e:
                log(event="account_submit_failed", clientId=self.client_id, kind=errors.classify(e))
                if self._is_current(epoch):
                    self.notifications.error(errors.account_message(e))
                return False

            if not self._is_current(epoch):
                return False
            log(event="account_saved", clientId=self.client_id, checkoutId=checkout_id)
            self._enter(Step.PLAN)
            return True

    # ------------------------------------------------------------------
    # Plan
    # ------------------------------------------------------------------
    async def run_plan(self) -> PlanStatus:
        """Check the cart, then link the account while the progress stages play."""
        self._require_step(Step.PLAN)
        if self.plan_status in (PlanStatus.LOADING, PlanStatus.SUCCESS):
            return self.plan_status

        epoch = self._epoch
        self.plan_status = PlanStatus.LOADING
        self.plan_error = ""
        self.plan_progress.reset()
        try:
            checkout_id = self.session.require()
            cart = Cart.from_api(await self.apis.checkout.get_cart())
            if not self._is_current(epoch):
                return self.plan_status
            if cart.is_empty:
                self.plan_status = PlanStatus.EMPTY_CART
                self.plan_error = errors.EMPTY_CART
                log(event="plan_empty_cart", clientId=self.client_id)
                return self.plan_status
            await run_with_progress(self.apis.checkout.link_account(checkout_id), self.plan_progress)
        except Exception as e:
            log(event="plan_link_failed", clientId=self.client_id, kind=errors.classify(e), error=str(e)[:300])
            if self._is_current(epoch):
                self.plan_status = PlanStatus.ERROR
                self.plan_error = errors.describe(e, errors.PLAN_FAILED)
                self.notifications.error(self.plan_error)
            return self.plan_status

        if not self._is_current(epoch):
            return self.plan_status
        self.plan_status = PlanStatus.SUCCESS
        log(event="plan_linked", clientId=self.client_id, checkoutId=checkout_id)
        self._schedule(self.timings.plan_advance_delay, lambda: self._advance_after_plan(epoch))
        return self.plan_status

    def _advance_after_plan(self, epoch: int) -> None:
        if self._is_current(epoch) and self.step is Step.PLAN and self.plan_status is PlanStatus.SUCCESS:
            self._enter(Step.REVIEW)

    async def retry_plan(self) -> PlanStatus:
        self._require_step(Step.PLAN)
        if self.plan_status not in (PlanStatus.ERROR, PlanStatus.EMPTY_CART):
            raise errors.InvalidTransition("Nothing to retry")
        # Re-enter the step from scratch.
        self._epoch += 1
        self.plan_status = PlanStatus.IDLE
        return await self.run_plan()

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------
    async def load_review(self) -> Optional[dict]:
        self._require_step(Step.REVIEW)
        epoch = self._epoch
        self.review_status = ReviewStatus.LOADING
        self.review_error = ""
        try:
            cart = Cart.from_api(await self.apis.checkout.get_cart())
        except Exception as e:
            log(event="review_load_failed", clientId=self.client_id, kind=errors.classify(e))
            if self._is_current(epoch):
                self.review_status = ReviewStatus.ERROR
                self.review_error = errors.describe(e, "Failed to load plan details")
                self.notifications.error(self.review_error)
            return None
        if not self._is_current(epoch):
            return None
        self.review = review_summary(cart)
        self.review_status = ReviewStatus.READY
        return self.review

    # ------------------------------------------------------------------
    # Payment
    # ------------------------------------------------------------------
    def update_payment(self, **changes) -> dict:
        self._require_step(Step.PAYMENT)
        unknown = set(changes) - set(PAYMENT_FIELDS)
        if unknown:
            raise errors.ValidationFailed("Unknown fields", {k: "Unknown field" for k in sorted(unknown)})
        if self.payment_status in (PaymentStatus.PROCESSING, PaymentStatus.CONFIRMED):
            raise errors.InvalidTransition("Payment already submitted")
        for k, v in changes.items():
            if v is not None:
                setattr(self.payment, k, v)
        return self.payment_errors()

    @property
    def card_brand(self) -> str:
        return detect_card_brand(self.payment.cardNumber)

    def payment_errors(self) -> Dict[str, str]:
        p = self.payment
        out = card_errors(p.cardHolderName, p.cardNumber, p.expiry, p.cvv)
        if not p.termsAccepted:
            out["termsAccepted"] = "You must accept the terms of service"
        return out

    async def submit_payment(self) -> bool:
        self._require_step(Step.PAYMENT)
        if self.payment_status in (PaymentStatus.PROCESSING, PaymentStatus.CONFIRMED):
            raise errors.StepBusy("Payment already submitted")
        blockers = self.payment_errors()
        if blockers:
            log(event="payment_blocked", clientId=self.client_id, fields=sorted(blockers))
            self.notifications.error(next(iter(blockers.values())))
            return False

        async with self._in_flight("payment"):
            epoch = self._epoch
            self.payment_status = PaymentStatus.PROCESSING
            self.payment_error = ""
            try:
                self.session.require()
                await run_with_progress(self._charge(), self.payment_progress)
            except Exception as e:
                log(event="payment_failed", clientId=self.client_id, kind=errors.classify(e))
                if self._is_current(epoch):
                    self.payment_status = PaymentStatus.FAILED
                    self.payment_error = errors.payment_message(e)
                    self.notifications.error(self.payment_error)
                return False

            if not self._is_current(epoch):
                return False
            self.payment_status = PaymentStatus.CONFIRMED
            self.redirect = {
                "url": settings.PAYMENT_REDIRECT_URL,
                "delaySec": self.timings.redirect_delay,
                "due": False,
            }
            self._schedule(self.timings.redirect_delay, self._redirect_now)
            self.notifications.success("Payment successful! An activation link has been sent to your email.", ttl=0)
            log(event="payment_confirmed", clientId=self.client_id, checkoutId=self.payment.sessionId)
            return True

    async def _charge(self) -> dict:
        if settings.ROTATE_CHECKOUT_ID_BEFORE_PAYMENT:
            sid = await self.session.rotate()
        else:
            sid = self.session.require()
        self.payment.sessionId = sid
        p = self.payment
        return await self.apis.checkout.process_payment(
            card_name=p.cardHolderName.strip(),
            card_number=p.card_digits,
            cvv=p.cvv.strip(),
            expiry=p.expiry.strip(),
            sid=sid,
        )

    def _redirect_now(self) -> None:
        if not self.redirect:
            return
        self.redirect["due"] = True
        log(event="payment_redirect", clientId=self.client_id, url=self.redirect["url"])
        if self.on_redirect:
            self.on_redirect(self.redirect["url"])

    # ------------------------------------------------------------------
    # View
    # ------------------------------------------------------------------
    def dismiss_notification(self, notification_id: str) -> bool:
        return self.notifications.dismiss(notification_id)

    def progress(self) -> List[dict]:
        out = []
        for step, (title, description) in STEP_INFO.items():
            if step < self.step:
                status = "done"
            elif step == self.step:
                status = "current"
            else:
                status = "upcoming"
            out.append({"number": int(step), "title": title, "description": description, "status": status})
        return out

    def snapshot(self) -> dict:
        checks = self.password_checks
        payment_blockers = self.payment_errors()
        editable = self.payment_status in (PaymentStatus.EDITING, PaymentStatus.FAILED)
        plan = {
            "status": self.plan_status.value,
            "error": self.plan_error,
            "progress": self.plan_progress.as_dict(),
        }
        if self.plan_status is PlanStatus.EMPTY_CART:
            plan["addPlansUrl"] = settings.ADD_PLANS_URL

        return {
            "clientId": self.client_id,
            "checkoutId": self.session.id,
            "step": int(self.step),
            "stepName": self.step.name.lower(),
            "steps": self.progress(),
            "busy": self.busy,
            "form": self.form.public_view(),
            "personal": {
                "primaryAction": self.primary_action.value,
                "emailStatus": self.email_status.value,
                "verification": self.verification.as_dict(),
                "errors": self.personal_errors(),
            },
            "account": {
                "passwordChecks": checks.as_dict(),
                "canSubmit": checks.all_ok,
            },
            "plan": plan,
            "review": {
                "status": self.review_status.value,
                "error": self.review_error,
                "summary": self.review,
            },
            "payment": {
                "status": self.payment_status.value,
                "error": self.payment_error,
                "card": self.payment.masked_view(),
                "cardNumberDisplay": self.payment.display_number if editable else "",
                "cardBrand": self.card_brand,
                "errors": payment_blockers,
                "canSubmit": editable and not payment_blockers,
                "progress": self.payment_progress.as_dict(),
                "redirect": self.redirect,
            },
            "notifications": [n.as_dict() for n in self.notifications.items()],
        }
