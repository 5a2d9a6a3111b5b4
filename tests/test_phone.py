import pytest

from app.utils.phone import (
    format_phone_for_whatsapp,
    is_valid_phone_number,
    local_msisdn,
    matches_payment_method,
    phone_validation_error,
)


def test_valid_numbers():
    assert is_valid_phone_number("+237 670-000-000")
    assert is_valid_phone_number("237699000000")
    assert not is_valid_phone_number("12345")
    assert not is_valid_phone_number(None)


def test_validation_errors():
    assert phone_validation_error("") is None
    assert phone_validation_error("+237 670 000 000") is None
    assert phone_validation_error("67a000000") == "Phone number can only contain digits and optional + at the start"
    assert phone_validation_error("670000") == "Phone number must be at least 10 digits"
    assert phone_validation_error("1234567890123456") == "Phone number cannot exceed 15 digits"


def test_whatsapp_format_and_local_number():
    assert format_phone_for_whatsapp("+237 (670) 00-00-00") == "237670000000"
    assert local_msisdn("+237670000000") == "670000000"
    assert local_msisdn("670000000") == "670000000"


@pytest.mark.parametrize(
    "phone, method, expected",
    [
        ("+237670000000", "mtn", True),
        ("+237651000000", "mtn", True),
        ("+237690000000", "mtn", False),
        ("+237690000000", "orange", True),
        ("655000000", "orange", True),
        ("+237670000000", "orange", False),
        ("+237270000000", "mtn", False),
    ],
)
def test_operator_prefixes(phone, method, expected):
    assert matches_payment_method(phone, method) is expected
