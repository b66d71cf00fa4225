"""Registration field validation."""

import re
from datetime import date

from email_validator import EmailNotValidError, validate_email

from core.errors import ValidationFailed
from core.gateway import ProfileFields

MINIMUM_AGE = 18

# Patterns are applied with fullmatch and accept ASCII digits only
USERNAME_PATTERN = re.compile(r"[A-Za-z0-9_-]{3,20}")

# Dominican Republic area codes followed by a 7-digit number
PHONE_PATTERN = re.compile(r"(809|829|849)[0-9]{7}")

PASSWORD_ALPHABET = re.compile(r"[A-Za-z0-9@$!%*?&]+")
PASSWORD_REQUIREMENTS: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r".{8,}"), "at least 8 characters"),
    (re.compile(r"[A-Z]"), "an uppercase letter"),
    (re.compile(r"[a-z]"), "a lowercase letter"),
    (re.compile(r"[0-9]"), "a number"),
    (re.compile(r"[@$!%*?&]"), "a special character (@$!%*?&)"),
]


def calculate_age(birth_date: date, today: date | None = None) -> int:
    """Whole years between birth_date and today, counting birthdays."""
    today = today or date.today()
    age = today.year - birth_date.year
    if (today.month, today.day) < (birth_date.month, birth_date.day):
        age -= 1
    return age


def normalize_phone(phone: str) -> str:
    """Strip everything but ASCII digits."""
    return re.sub(r"[^0-9]", "", phone)


def missing_password_requirements(password: str) -> list[str]:
    return [message for pattern, message in PASSWORD_REQUIREMENTS if not pattern.search(password)]


def validate_username(username: str) -> None:
    if not 3 <= len(username) <= 20:
        raise ValidationFailed("username", "must be 3-20 characters long")
    if not USERNAME_PATTERN.fullmatch(username):
        raise ValidationFailed("username", "only letters, numbers, hyphens and underscores")


def validate_email_address(email: str) -> str:
    """Return the normalized address."""
    try:
        return validate_email(email, check_deliverability=False).normalized
    except EmailNotValidError as exc:
        raise ValidationFailed("email", f"invalid email address: {exc}") from exc


def validate_password(password: str) -> None:
    missing = missing_password_requirements(password)
    if missing:
        raise ValidationFailed("password", "missing " + ", ".join(missing))
    if not PASSWORD_ALPHABET.fullmatch(password):
        raise ValidationFailed("password", "only letters, numbers and @$!%*?& are allowed")


def validate_birth_date(birth_date: date, today: date | None = None) -> None:
    age = calculate_age(birth_date, today)
    if age < MINIMUM_AGE:
        raise ValidationFailed("birth_date", f"you are {age}, you must be at least {MINIMUM_AGE}")


def validate_phone(phone: str) -> str:
    """Return the phone number reduced to its digits."""
    digits = normalize_phone(phone)
    if not PHONE_PATTERN.fullmatch(digits):
        raise ValidationFailed("phone", "must be 809, 829 or 849 followed by 7 digits")
    return digits


def validate_profile(profile: ProfileFields, today: date | None = None) -> ProfileFields:
    """
    Check every registration field, in form order.

    Returns:
        The profile with normalized email and phone

    Raises:
        ValidationFailed: for the first invalid field
    """
    validate_username(profile.username)
    email = validate_email_address(profile.email)
    validate_password(profile.password)
    validate_birth_date(profile.birth_date, today)
    phone = validate_phone(profile.phone)

    return ProfileFields(
        username=profile.username,
        email=email,
        password=profile.password,
        birth_date=profile.birth_date,
        phone=phone,
    )
