import secrets
from datetime import UTC, datetime


def now() -> datetime:
    return datetime.now(UTC)


def random_hex(nbytes: int = 32) -> str:
    """Random token rendered as hex, 2 * nbytes characters long."""
    return secrets.token_hex(nbytes)


def normalize_email(email: str) -> str:
    return email.strip().lower()
