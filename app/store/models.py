from dataclasses import asdict, dataclass, field
from typing import Optional

from app.settings import settings
from app.utils.text import digits_only, group_digits

# Fields that are never echoed back to the client or written to logs
CREDENTIAL_FIELDS = ("password", "confirmPassword")

# Required to leave the Personal step ("additional" is optional)
REQUIRED_PERSONAL_FIELDS = ("firstName", "lastName", "email", "phone", "zipCode", "state", "city", "street")


@dataclass
class FormRecord:
    # Identity
    firstName: str = ""
    lastName: str = ""
    email: str = ""
    phone: str = ""
    countryCode: str = field(default_factory=lambda: settings.DEFAULT_COUNTRY)

    # Address
    zipCode: str = ""
    state: str = ""
    city: str = ""
    street: str = ""
    additional: str = ""

    # Credential
    password: str = ""
    confirmPassword: str = ""

    # Verification flag (mirrors VerificationSession.verified)
    mfaVerified: bool = False

    # Always equal to email; see set_email()
    username: str = ""

    def set_email(self, email: str) -> None:
        self.email = email or ""
        self.username = self.email

    def patch(self, **changes) -> dict:
        """
        Shallow-merge known fields; returns {field: (old, new)} for the ones that changed.
        Email goes through set_email() so username cannot drift.
        """
        changed = {}
        for k, v in changes.items():
            if k == "username" or not hasattr(self, k):
                continue
            old = getattr(self, k)
            if v is None or old == v:
                continue
            if k == "email":
                self.set_email(v)
            else:
                setattr(self, k, v)
            changed[k] = (old, v)
        return changed

    def clear_credentials(self) -> None:
        self.password = ""
        self.confirmPassword = ""

    @property
    def full_name(self) -> str:
        return f"{self.firstName.strip()} {self.lastName.strip()}".strip()

    def public_view(self) -> dict:
        data = asdict(self)
        for k in CREDENTIAL_FIELDS:
            data.pop(k, None)
        return data


@dataclass
class PaymentRecord:
    cardHolderName: str = ""
    cardNumber: str = ""
    expiry: str = ""
    cvv: str = ""
    termsAccepted: bool = False
    sessionId: Optional[str] = None

    @property
    def card_digits(self) -> str:
        return digits_only(self.cardNumber)

    @property
    def display_number(self) -> str:
        return group_digits(self.cardNumber)

    def masked_view(self) -> dict:
        d = self.card_digits
        return {
            "cardHolderName": self.cardHolderName,
            "cardNumber": ("**** " + d[-4:]) if len(d) >= 4 else "",
            "expiry": self.expiry,
            "termsAccepted": self.termsAccepted,
        }


@dataclass
class CheckoutSession:
    id: str
    createdAt: int
