import re

from globetrotter.errors import ValidationError
from globetrotter.utils import normalize_email

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")

# bcrypt only looks at the first 72 bytes and newer releases refuse longer input
MAX_PASSWORD_BYTES = 72


def validate_password(password: str) -> None:
    """Validate password meets requirements.

    Requirements:
    - Minimum length of 6 characters
    - At most 72 bytes once UTF-8 encoded

    Raises:
        ValidationError: If password doesn't meet requirements
    """
    if len(password) < 6:
        raise ValidationError("Password must be at least 6 characters long")

    if len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
        raise ValidationError("Password is too long")


def validate_name(value: str, label: str) -> str:
    """Trim a first/last name and check it is 2 to 50 characters long."""
    value = value.strip()
    if not 2 <= len(value) <= 50:
        raise ValidationError(f"{label} must be between 2 and 50 characters")
    return value


def validate_email(email: str) -> str:
    """Normalize an email address and check its shape."""
    email = normalize_email(email)
    if not EMAIL_RE.fullmatch(email):
        raise ValidationError("Please enter a valid email")
    return email
