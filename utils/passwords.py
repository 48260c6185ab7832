"""Password policy and random token helpers."""

from __future__ import annotations

import re
import secrets
from datetime import datetime, timedelta

from werkzeug.exceptions import BadRequest

MIN_PASSWORD_LENGTH = 8
_SPECIAL_CHARACTERS = re.compile(r"[@!#$%^&*(),.?\":{}|<>_\-+=\[\]~`';/\\]")


def validate_password(password: str) -> None:
    """Raise BadRequest unless the password meets the complexity policy."""

    if not isinstance(password, str):
        raise BadRequest("Password must be a string.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise BadRequest(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
        )
    checks = (
        re.search(r"[A-Z]", password),
        re.search(r"[a-z]", password),
        re.search(r"[0-9]", password),
        _SPECIAL_CHARACTERS.search(password),
    )
    if not all(checks):
        raise BadRequest(
            "Password must include uppercase, lowercase, numbers, and special characters."
        )


def generate_token(num_bytes: int = 32) -> str:
    return secrets.token_hex(num_bytes)


def generate_expiring_token(hours: int) -> tuple[str, datetime]:
    """Return a random token and its expiry ``hours`` from now."""

    return generate_token(), datetime.utcnow() + timedelta(hours=hours)
