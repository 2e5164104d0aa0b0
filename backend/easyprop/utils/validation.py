"""
Form validation helpers shared by the settings, tours and leads services.
"""

import re
from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
# Indian mobile numbers in E.164 form
PHONE_PATTERN = re.compile(r"^\+91[6-9]\d{9}$")
CARD_PATTERN = re.compile(r"^\d{13,19}$")
CVV_PATTERN = re.compile(r"^\d{3,4}$")

CARD_PAYMENT_METHODS = ("credit_card", "debit_card")


class FieldCheck(BaseModel):
    is_valid: bool
    error: Optional[str] = None


class PasswordCheck(BaseModel):
    is_valid: bool
    errors: List[str] = []
    strength: str = "weak"


class FormCheck(BaseModel):
    is_valid: bool
    errors: Dict[str, str] = {}


def validate_email(email: Optional[str]) -> bool:
    return bool(email) and bool(EMAIL_PATTERN.match(email))


def validate_phone(phone: Optional[str]) -> bool:
    return bool(phone) and bool(PHONE_PATTERN.match(phone))


def get_password_strength(password: str) -> str:
    score = 0
    if len(password) >= 8:
        score += 1
    if re.search(r"[A-Z]", password):
        score += 1
    if re.search(r"[a-z]", password):
        score += 1
    if re.search(r"\d", password):
        score += 1
    if re.search(r"[^A-Za-z0-9]", password):
        score += 1

    if score <= 2:
        return "weak"
    if score <= 3:
        return "medium"
    return "strong"


def validate_password(password: str) -> PasswordCheck:
    errors = []
    if len(password) < 6:
        errors.append("Password must be at least 6 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"\d", password):
        errors.append("Password must contain at least one number")

    return PasswordCheck(
        is_valid=not errors,
        errors=errors,
        strength=get_password_strength(password)
    )


def validate_card_number(card_number: str) -> FieldCheck:
    """Format check followed by the Luhn checksum."""
    clean = re.sub(r"\s", "", card_number or "")
    if not CARD_PATTERN.match(clean):
        return FieldCheck(is_valid=False, error="Invalid card number format")

    total = 0
    double = False
    for char in reversed(clean):
        digit = int(char)
        if double:
            digit *= 2
            if digit > 9:
                digit -= 9
        total += digit
        double = not double

    if total % 10 == 0:
        return FieldCheck(is_valid=True)
    return FieldCheck(is_valid=False, error="Invalid card number")


def validate_expiry_date(expiry_date: str, now: Optional[datetime] = None) -> FieldCheck:
    parts = (expiry_date or "").split("/")
    if len(parts) != 2 or len(parts[0]) != 2 or len(parts[1]) != 2 \
            or not parts[0].isdigit() or not parts[1].isdigit():
        return FieldCheck(is_valid=False, error="Invalid expiry date format")

    month = int(parts[0])
    year = 2000 + int(parts[1])
    now = now or datetime.utcnow()

    if month < 1 or month > 12:
        return FieldCheck(is_valid=False, error="Invalid month")
    if year < now.year or (year == now.year and month < now.month):
        return FieldCheck(is_valid=False, error="Card has expired")
    return FieldCheck(is_valid=True)


def validate_cvv(cvv: str) -> FieldCheck:
    if not CVV_PATTERN.match(cvv or ""):
        return FieldCheck(is_valid=False, error="CVV must be 3 or 4 digits")
    return FieldCheck(is_valid=True)


def format_phone_number(value: str) -> str:
    """Strip everything but digits and '+', prefixing +91 to bare ten-digit mobiles."""
    value = re.sub(r"[^\d+]", "", value or "")
    if re.match(r"^[6-9]\d{9}$", value):
        value = f"+91{value}"
    return value


def format_card_number(value: str) -> str:
    digits = re.sub(r"\D", "", value or "")
    grouped = re.sub(r"(\d{4})(?=\d)", r"\1 ", digits)
    return grouped[:19]


def format_expiry_date(value: str) -> str:
    digits = re.sub(r"\D", "", value or "")
    if len(digits) >= 2:
        digits = digits[:2] + "/" + digits[2:4]
    return digits[:5]


def _blank(value: Any) -> bool:
    return not (value or "").strip()


def validate_profile_data(data: Dict[str, Any]) -> FormCheck:
    errors = {}

    if _blank(data.get("first_name")):
        errors["first_name"] = "First name is required"
    if _blank(data.get("last_name")):
        errors["last_name"] = "Last name is required"

    if _blank(data.get("email")):
        errors["email"] = "Email is required"
    elif not validate_email(data["email"]):
        errors["email"] = "Invalid email format"

    if data.get("phone") and not validate_phone(data["phone"]):
        errors["phone"] = "Invalid phone number format"

    return FormCheck(is_valid=not errors, errors=errors)


def validate_billing_data(data: Dict[str, Any]) -> FormCheck:
    errors = {}

    if data.get("plan") != "free":
        payment_method = data.get("payment_method")
        if not payment_method:
            errors["payment_method"] = "Payment method is required"

        if payment_method in CARD_PAYMENT_METHODS:
            if not data.get("card_number"):
                errors["card_number"] = "Card number is required"
            else:
                check = validate_card_number(data["card_number"])
                if not check.is_valid:
                    errors["card_number"] = check.error

            if not data.get("expiry_date"):
                errors["expiry_date"] = "Expiry date is required"
            else:
                check = validate_expiry_date(data["expiry_date"])
                if not check.is_valid:
                    errors["expiry_date"] = check.error

            if not data.get("cvv"):
                errors["cvv"] = "CVV is required"
            else:
                check = validate_cvv(data["cvv"])
                if not check.is_valid:
                    errors["cvv"] = check.error

        if _blank(data.get("billing_address")):
            errors["billing_address"] = "Billing address is required"

    return FormCheck(is_valid=not errors, errors=errors)
