"""Leaf format predicates: plain boolean checks over a string."""

from __future__ import annotations

from functools import lru_cache
import ipaddress
import re
import unicodedata
from typing import Any

import phonenumbers
from phonenumbers import NumberParseException
from pydantic import AnyUrl
from pydantic import EmailStr
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

_CARD_SEPARATORS = re.compile(r"[ \-]")


@lru_cache(maxsize=None)
def _adapter(tp: Any) -> TypeAdapter:
    return TypeAdapter(tp)


def _accepted_by(tp: Any, value: str) -> bool:
    try:
        _adapter(tp).validate_python(value)
    except PydanticValidationError:
        return False
    return True


def is_email(value: str) -> bool:
    return _accepted_by(EmailStr, value)


def is_url(value: str) -> bool:
    return _accepted_by(AnyUrl, value)


def is_phone(value: str) -> bool:
    """International number with a leading ``+`` country code, valid for its region."""
    try:
        parsed = phonenumbers.parse(value, None)
    except NumberParseException:
        return False
    return phonenumbers.is_valid_number(parsed)


def is_credit_card(value: str) -> bool:
    """Luhn checksum over 12 to 19 digits, ignoring spaces and dashes."""
    digits = _CARD_SEPARATORS.sub("", value)
    if not (digits.isascii() and digits.isdigit()) or not 12 <= len(digits) <= 19:
        return False
    total = 0
    for position, ch in enumerate(reversed(digits)):
        digit = int(ch)
        if position % 2 == 1:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
    return total % 10 == 0


def is_ip(value: str, version: int | None = None) -> bool:
    try:
        address = ipaddress.ip_address(value)
    except ValueError:
        return False
    return version is None or address.version == version


def has_no_control_characters(value: str) -> bool:
    return all(unicodedata.category(ch) != "Cc" for ch in value)


def matches(pattern: re.Pattern[str], value: str) -> bool:
    return pattern.search(value) is not None
