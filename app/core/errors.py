"""
Wizard error taxonomy and the fixed user-facing messages.

(a) ValidationFailed         local field rules; shown inline
(b) CollaboratorError        remote rejected the request (has an HTTP status)
(c) CollaboratorUnavailable  transport failure, no response received
(d) SessionNotReady          acting before a checkout session id exists

None of these are fatal; the controller turns them into notifications.
"""
from typing import Dict, Optional


class WizardError(Exception):
    pass


class ValidationFailed(WizardError):
    def __init__(self, message: str, fields: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.fields = fields or {}


class CollaboratorError(WizardError):
    def __init__(self, status_code: int, message: str = "", payload: Optional[dict] = None):
        super().__init__(message or f"HTTP {status_code}")
        self.status_code = int(status_code)
        self.server_message = message
        self.payload = payload or {}


class CollaboratorUnavailable(WizardError):
    pass


class SessionNotReady(WizardError):
    pass


class StepBusy(WizardError):
    """A forward navigation is already in flight for this wizard."""


class InvalidTransition(WizardError):
    pass


GENERIC_ERROR = "Something went wrong. Please try again."
NETWORK_ERROR = "Network error. Please try again."
SESSION_NOT_READY = "Your checkout session is not ready. Please refresh the page and try again."

ACCOUNT_STATUS_MESSAGES: Dict[int, str] = {
    400: "Please check your information and try again.",
    401: "Your session has expired. Please refresh the page.",
    409: "This information is already in use.",
    429: "Too many attempts. Please wait a moment and try again.",
    500: "Server error. Please try again later.",
}
ACCOUNT_FALLBACK = "Unable to create your account. Please try again."

PAYMENT_FAILED = "Payment processing failed. Please try again."
PLAN_FAILED = "Failed to associate plan"
EMPTY_CART = "No items in cart. Please add plans before proceeding."
CODE_SEND_FAILED = "Failed to send verification code"
CODE_SEND_ERROR = "Error sending verification code"
CODE_INVALID = "Invalid verification code"
CODE_VERIFY_ERROR = "Error verifying code"


def classify(exc: BaseException) -> str:
    """Short kind label used in log events."""
    if isinstance(exc, CollaboratorError):
        return f"http_{exc.status_code}"
    if isinstance(exc, CollaboratorUnavailable):
        return "network"
    if isinstance(exc, SessionNotReady):
        return "precondition"
    if isinstance(exc, ValidationFailed):
        return "validation"
    return "unknown"


def account_message(exc: BaseException) -> str:
    if isinstance(exc, SessionNotReady):
        return SESSION_NOT_READY
    if isinstance(exc, CollaboratorError):
        return ACCOUNT_STATUS_MESSAGES.get(exc.status_code, ACCOUNT_FALLBACK)
    return ACCOUNT_FALLBACK


def payment_message(exc: BaseException) -> str:
    if isinstance(exc, SessionNotReady):
        return SESSION_NOT_READY
    if isinstance(exc, CollaboratorError):
        return exc.server_message or PAYMENT_FAILED
    if isinstance(exc, CollaboratorUnavailable):
        return NETWORK_ERROR
    return PAYMENT_FAILED


def describe(exc: BaseException, fallback: str = GENERIC_ERROR) -> str:
    """Default mapping: server text for rejections, fixed text otherwise."""
    if isinstance(exc, SessionNotReady):
        return SESSION_NOT_READY
    if isinstance(exc, ValidationFailed):
        return str(exc)
    if isinstance(exc, CollaboratorError):
        return exc.server_message or fallback
    if isinstance(exc, CollaboratorUnavailable):
        return NETWORK_ERROR
    if isinstance(exc, WizardError) and str(exc):
        return str(exc)
    return fallback
