"""Phone number helpers for mobile-money payments and WhatsApp links."""

import re
from typing import Optional

_STRIP_PATTERN = re.compile(r"[\s\-()]")
_PHONE_PATTERN = re.compile(r"^\+?\d{10,15}$")

# Cameroon mobile prefixes (after the 237 country code)
_MTN_PREFIXES = ("67", "650", "651", "652", "653", "654", "680", "681", "682", "683")
_ORANGE_PREFIXES = ("69", "655", "656", "657", "658", "659", "686", "687", "688", "689")


def clean_phone_number(phone: str) -> str:
    return _STRIP_PATTERN.sub("", phone.strip())


def is_valid_phone_number(phone: Optional[str]) -> bool:
    if not phone:
        return False
    return bool(_PHONE_PATTERN.match(clean_phone_number(phone)))


def phone_validation_error(phone: Optional[str]) -> Optional[str]:
    """Return a user-facing error, or None when the number is acceptable (empty is acceptable)."""
    if not phone or not phone.strip():
        return None

    cleaned = clean_phone_number(phone)
    if not re.fullmatch(r"\+?\d+", cleaned):
        return "Phone number can only contain digits and optional + at the start"

    digits = cleaned.replace("+", "")
    if len(digits) < 10:
        return "Phone number must be at least 10 digits"
    if len(digits) > 15:
        return "Phone number cannot exceed 15 digits"
    return None


def format_phone_for_whatsapp(phone: Optional[str]) -> str:
    if not phone:
        return ""
    return re.sub(r"[^0-9]", "", phone)


def local_msisdn(phone: str) -> str:
    """Strip the Cameroon country code and any non-digits."""
    digits = format_phone_for_whatsapp(phone)
    if digits.startswith("237") and len(digits) == 12:
        return digits[3:]
    return digits


def matches_payment_method(phone: str, payment_method: str) -> bool:
    """Check that a Cameroon number belongs to the operator of the chosen wallet."""
    number = local_msisdn(phone)
    if len(number) != 9 or not number.startswith("6"):
        return False
    prefixes = _MTN_PREFIXES if payment_method == "mtn" else _ORANGE_PREFIXES
    return number.startswith(prefixes)
