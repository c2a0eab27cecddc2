import pytest
from datetime import date

from app.core.countries import get_country
from app.core.validation import (
    card_errors,
    check_password,
    detect_card_brand,
    is_valid_card_number,
    is_valid_cvv,
    is_valid_email,
    is_valid_expiry,
    is_valid_phone,
    parse_expiry,
)

TODAY = date(2026, 6, 15)


def test_password_policy_all_rules():
    checks = check_password("Secur3!pass", "Secur3!pass")
    assert checks.has_min_length
    assert checks.has_uppercase
    assert checks.has_number
    assert checks.has_special
    assert checks.passwords_match
    assert checks.all_ok


@pytest.mark.parametrize("password,missing", [
    ("Sh0rt!", "has_min_length"),
    ("lowercase1!", "has_uppercase"),
    ("NoDigits!!", "has_number"),
    ("NoSpecial12", "has_special"),
])
def test_password_policy_each_rule_blocks(password, missing):
    checks = check_password(password, password)
    assert getattr(checks, missing) is False
    assert not checks.policy_ok
    assert not checks.all_ok


def test_password_mismatch_blocks_even_when_policy_met():
    checks = check_password("Secur3!pass", "Secur3!pasS")
    assert checks.policy_ok
    assert not checks.passwords_match
    assert not checks.all_ok
    assert checks.as_dict()["policy_ok"] is True


def test_password_checks_handle_none():
    checks = check_password(None, None)
    assert not checks.has_min_length
    assert checks.passwords_match


@pytest.mark.parametrize("email,ok", [
    ("ada@example.com", True),
    ("  ada.lovelace+tag@mail.example.co  ", True),
    ("ada@example", False),
    ("ada.example.com", False),
    ("", False),
])
def test_email_format(email, ok):
    assert is_valid_email(email) is ok


def test_phone_rules_per_country():
    assert is_valid_phone(get_country("US"), "(555) 123-4567")
    assert not is_valid_phone(get_country("US"), "555 123 456")
    assert is_valid_phone(get_country("AU"), "400 000 000")
    assert is_valid_phone(get_country("BR"), "(11) 9999-9999")
    assert is_valid_phone(get_country("BR"), "(11) 99999-9999")
    assert not is_valid_phone(get_country("BR"), "(11) 999-9999")


@pytest.mark.parametrize("number,brand", [
    ("4111 1111 1111 1111", "visa"),
    ("5500 0000 0000 0004", "mastercard"),
    ("3400 000000 00009", "amex"),
    ("3782 822463 10005", "amex"),
    ("6011 0000 0000 0004", "discover"),
    ("3056 930902 5904", "diners"),
    ("3530 1113 3330 0000", "jcb"),
    ("9999 9999 9999 9999", "none"),
    ("", "none"),
])
def test_card_brand_detection(number, brand):
    assert detect_card_brand(number) == brand


def test_card_number_length_bounds():
    assert not is_valid_card_number("4111 1111 1111")
    assert is_valid_card_number("4222222222222")
    assert is_valid_card_number("4" * 19)
    assert not is_valid_card_number("4" * 20)


def test_expiry_shape_and_range():
    assert parse_expiry("07/28") == (7, 2028)
    assert parse_expiry("7/28") is None
    assert parse_expiry("07-28") is None
    assert not is_valid_expiry("13/28", TODAY)
    assert not is_valid_expiry("00/28", TODAY)


def test_expiry_current_month_is_still_valid():
    assert is_valid_expiry("06/26", TODAY)
    assert not is_valid_expiry("05/26", TODAY)
    assert not is_valid_expiry("12/25", TODAY)
    assert is_valid_expiry("01/27", TODAY)


def test_expiry_far_future_accepted():
    assert is_valid_expiry("12/99", TODAY)


@pytest.mark.parametrize("cvv,ok", [("123", True), ("1234", True), ("12", False), ("12345", False), ("12a", False)])
def test_cvv(cvv, ok):
    assert is_valid_cvv(cvv) is ok


def test_card_errors_collects_every_field():
    errs = card_errors("", "4111", "13/30", "1", today=TODAY)
    assert set(errs) == {"cardHolderName", "cardNumber", "expiry", "cvv"}
    assert card_errors("Ada Lovelace", "4111 1111 1111 1111", "12/30", "123", today=TODAY) == {}
