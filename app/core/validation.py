"""
Field-level validation rules.

Everything here is pure: no I/O, no clock reads unless `today` is omitted.
Email availability is not a local rule; see WizardController.
"""
import re
from dataclasses import asdict, dataclass
from datetime import date
from typing import Optional, Tuple

from app.core.countries import Country
from app.utils.text import digits_only, is_blank

SPECIAL_CHARACTERS = "!@#$%^&*()_+{}[]:;<>,.?~\\/-"
PASSWORD_MIN_LENGTH = 8

_SPECIAL_RE = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")
_UPPER_RE = re.compile(r"[A-Z]")
_DIGIT_RE = re.compile(r"\d")
_EMAIL_RE = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
_EXPIRY_RE = re.compile(r"^(\d{2})/(\d{2})$")

# Order matters: first match wins.
CARD_BRANDS: Tuple[Tuple[str, "re.Pattern[str]"], ...] = (
    ("visa", re.compile(r"^4")),
    ("mastercard", re.compile(r"^5[1-5]")),
    ("amex", re.compile(r"^3[47]")),
    ("discover", re.compile(r"^6")),
    ("diners", re.compile(r"^3(?:0[0-5]|[68])")),
    ("jcb", re.compile(r"^(?:2131|1800|35\d{3})")),
)
NO_BRAND = "none"


@dataclass(frozen=True)
class PasswordChecks:
    has_min_length: bool
    has_uppercase: bool
    has_number: bool
    has_special: bool
    passwords_match: bool

    @property
    def policy_ok(self) -> bool:
        return self.has_min_length and self.has_uppercase and self.has_number and self.has_special

    @property
    def all_ok(self) -> bool:
        return self.policy_ok and self.passwords_match

    def as_dict(self) -> dict:
        d = asdict(self)
        d["policy_ok"] = self.policy_ok
        return d


def check_password(password: str, confirm: str) -> PasswordChecks:
    password = password or ""
    return PasswordChecks(
        has_min_length=len(password) >= PASSWORD_MIN_LENGTH,
        has_uppercase=bool(_UPPER_RE.search(password)),
        has_number=bool(_DIGIT_RE.search(password)),
        has_special=bool(_SPECIAL_RE.search(password)),
        passwords_match=password == (confirm or ""),
    )


def is_valid_phone(country: Country, phone: str) -> bool:
    return country.is_valid_phone(phone)


def is_valid_email(email: str) -> bool:
    if is_blank(email):
        return False
    return bool(_EMAIL_RE.match(email.strip()))


def is_valid_card_number(number: str) -> bool:
    return 13 <= len(digits_only(number)) <= 19


def detect_card_brand(number: str) -> str:
    d = digits_only(number)
    for brand, pattern in CARD_BRANDS:
        if pattern.match(d):
            return brand
    return NO_BRAND


def parse_expiry(expiry: str) -> Optional[Tuple[int, int]]:
    """'MM/YY' -> (month, 4-digit year), or None when the shape is wrong."""
    m = _EXPIRY_RE.match((expiry or "").strip())
    if not m:
        return None
    return int(m.group(1)), 2000 + int(m.group(2))


def is_valid_expiry(expiry: str, today: Optional[date] = None) -> bool:
    parsed = parse_expiry(expiry)
    if parsed is None:
        return False
    month, year = parsed
    if month < 1 or month > 12:
        return False
    today = today or date.today()
    # Valid through the end of the printed month.
    return (year, month) >= (today.year, today.month)


def is_valid_cvv(cvv: str) -> bool:
    raw = (cvv or "").strip()
    return raw.isdigit() and 3 <= len(raw) <= 4


def card_errors(holder: str, number: str, expiry: str, cvv: str, today: Optional[date] = None) -> dict:
    """Inline field errors for the payment form; empty dict when the card is submittable."""
    errors = {}
    if is_blank(holder):
        errors["cardHolderName"] = "Card holder name is required"
    if not is_valid_card_number(number):
        errors["cardNumber"] = "Please enter a valid card number"
    if not is_valid_expiry(expiry, today):
        errors["expiry"] = "Please enter a valid expiration date"
    if not is_valid_cvv(cvv):
        errors["cvv"] = "Please enter a valid CVV"
    return errors
