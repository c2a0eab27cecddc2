"""
Country reference data for the phone field.

Each entry carries the dialing prefix, the input mask shown by the front-end,
an example number and the digit-count rule used to accept a phone number.
"""
from dataclasses import dataclass
from typing import Callable, Dict, List

from app.utils.text import digits_only


@dataclass(frozen=True)
class Country:
    code: str
    name: str
    prefix: str
    mask: str
    example: str
    validate: Callable[[str], bool]

    def is_valid_phone(self, phone: str) -> bool:
        return bool(self.validate(phone or ""))

    def international(self, phone: str) -> str:
        """Prefix + bare digits, the shape the verification service expects."""
        return f"{self.prefix}{digits_only(phone)}"


def _digit_count_in(*counts: int) -> Callable[[str], bool]:
    allowed = frozenset(counts)
    return lambda phone: len(digits_only(phone)) in allowed


COUNTRIES: List[Country] = [
    Country("US", "United States", "+1", "+1 (000) 000-0000", "(555) 555-5555", _digit_count_in(10)),
    Country("CA", "Canada", "+1", "+1 (000) 000-0000", "(555) 555-5555", _digit_count_in(10)),
    Country("AU", "Australia", "+61", "+61 000 000 000", "400 000 000", _digit_count_in(9)),
    Country("BR", "Brazil", "+55", "+55 (00) 00000-0000", "(11) 99999-9999", _digit_count_in(10, 11)),
]

_BY_CODE: Dict[str, Country] = {c.code: c for c in COUNTRIES}


def get_country(code: str) -> Country:
    """Look up a supported country; raises KeyError for unknown codes."""
    try:
        return _BY_CODE[(code or "").strip().upper()]
    except KeyError:
        raise KeyError(f"Unsupported country: {code!r}") from None


def country_options() -> List[dict]:
    return [
        {"code": c.code, "name": c.name, "prefix": c.prefix, "mask": c.mask, "example": c.example}
        for c in COUNTRIES
    ]
