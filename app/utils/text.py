import re

_NON_DIGIT = re.compile(r"\D")


def digits_only(value) -> str:
    return _NON_DIGIT.sub("", str(value or ""))


def group_digits(value, size: int = 4) -> str:
    """'4111111111111111' -> '4111 1111 1111 1111'"""
    d = digits_only(value)
    return " ".join(d[i:i + size] for i in range(0, len(d), size))


def is_blank(value) -> bool:
    return not str(value or "").strip()
