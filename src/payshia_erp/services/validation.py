from __future__ import annotations

import re

from payshia_erp.domain.errors import ValidationError

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
HEX_RE = re.compile(r"^#[0-9a-fA-F]{6}$")
URL_RE = re.compile(r"^https?://[^\s/$.?#][^\s]*$", re.IGNORECASE)


def text(value: object, min_len: int, message: str) -> str:
    s = "" if value is None else str(value).strip()
    if len(s) < min_len:
        raise ValidationError(message)
    return s


def email(value: object, message: str = "Invalid email address.") -> str:
    s = "" if value is None else str(value).strip()
    if not EMAIL_RE.match(s):
        raise ValidationError(message)
    return s


def optional_email(value: object, message: str = "Invalid email address.") -> str:
    s = "" if value is None else str(value).strip()
    if s == "":
        return ""
    return email(s, message)


def optional_url(value: object, message: str = "Please enter a valid URL.") -> str:
    s = "" if value is None else str(value).strip()
    if s and not URL_RE.match(s):
        raise ValidationError(message)
    return s


def number(value: object, message: str, default: float | None = None) -> float:
    if value is None or (isinstance(value, str) and value.strip() == ""):
        if default is None:
            raise ValidationError(message)
        return default
    try:
        return float(value)
    except (TypeError, ValueError) as e:
        raise ValidationError(message) from e


def at_least(value: object, minimum: float, message: str, default: float | None = None) -> float:
    n = number(value, message, default)
    if n < minimum:
        raise ValidationError(message)
    return n


def integer(value: object, message: str) -> int:
    s = "" if value is None else str(value).strip()
    try:
        return int(s)
    except ValueError as e:
        raise ValidationError(message) from e
