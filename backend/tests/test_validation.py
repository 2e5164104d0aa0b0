from datetime import datetime

from easyprop.utils.validation import (
    format_card_number,
    format_expiry_date,
    format_phone_number,
    get_password_strength,
    validate_billing_data,
    validate_card_number,
    validate_cvv,
    validate_email,
    validate_expiry_date,
    validate_password,
    validate_phone,
    validate_profile_data,
)

NOW = datetime(2025, 6, 15)


def test_validate_email():
    assert validate_email("asha@example.com")
    assert not validate_email("asha@example")
    assert not validate_email("asha example.com")
    assert not validate_email("")
    assert not validate_email(None)


def test_validate_phone_requires_indian_mobile():
    assert validate_phone("+919876543210")
    assert not validate_phone("9876543210")
    assert not validate_phone("+915876543210")
    assert not validate_phone("+91987654321")


def test_format_phone_number():
    assert format_phone_number("98765 43210") == "+919876543210"
    assert format_phone_number("+91 98765-43210") == "+919876543210"
    assert format_phone_number("12345") == "12345"


def test_password_strength():
    assert get_password_strength("abc") == "weak"
    assert get_password_strength("abcdefgh1") == "medium"
    assert get_password_strength("Abcdefgh1") == "strong"
    assert get_password_strength("Abcdefgh1!") == "strong"


def test_validate_password_lists_every_missing_rule():
    check = validate_password("abc")
    assert not check.is_valid
    assert "Password must be at least 6 characters long" in check.errors
    assert "Password must contain at least one uppercase letter" in check.errors
    assert "Password must contain at least one number" in check.errors

    assert validate_password("Secret12").is_valid


def test_validate_card_number_luhn():
    assert validate_card_number("4111 1111 1111 1111").is_valid
    bad_checksum = validate_card_number("4111 1111 1111 1112")
    assert not bad_checksum.is_valid
    assert bad_checksum.error == "Invalid card number"
    assert validate_card_number("4111").error == "Invalid card number format"


def test_validate_expiry_date():
    assert validate_expiry_date("12/25", now=NOW).is_valid
    assert validate_expiry_date("06/25", now=NOW).is_valid
    assert validate_expiry_date("05/25", now=NOW).error == "Card has expired"
    assert validate_expiry_date("13/26", now=NOW).error == "Invalid month"
    assert validate_expiry_date("1/26", now=NOW).error == "Invalid expiry date format"


def test_validate_cvv():
    assert validate_cvv("123").is_valid
    assert validate_cvv("1234").is_valid
    assert not validate_cvv("12").is_valid
    assert not validate_cvv("12a").is_valid


def test_input_formatters():
    assert format_card_number("4111111111111111") == "4111 1111 1111 1111"
    assert format_expiry_date("1227") == "12/27"
    assert format_expiry_date("1") == "1"


def test_validate_profile_data():
    check = validate_profile_data({"first_name": "", "last_name": "Verma", "email": "bad", "phone": "123"})
    assert not check.is_valid
    assert check.errors == {
        "first_name": "First name is required",
        "email": "Invalid email format",
        "phone": "Invalid phone number format",
    }

    ok = validate_profile_data({
        "first_name": "Asha", "last_name": "Verma", "email": "asha@example.com", "phone": "+919876543210"
    })
    assert ok.is_valid


def test_validate_billing_data_free_plan_needs_nothing():
    assert validate_billing_data({"plan": "free"}).is_valid


def test_validate_billing_data_card_fields():
    check = validate_billing_data({
        "plan": "pro",
        "payment_method": "credit_card",
        "card_number": "4111 1111 1111 1112",
        "expiry_date": "",
        "cvv": "1",
        "billing_address": " ",
    })
    assert not check.is_valid
    assert set(check.errors) == {"card_number", "expiry_date", "cvv", "billing_address"}


def test_validate_billing_data_upi_skips_card_checks():
    check = validate_billing_data({"plan": "pro", "payment_method": "upi", "billing_address": "Pune"})
    assert check.is_valid
