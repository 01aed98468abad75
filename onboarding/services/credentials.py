"""Generation and hashing of the administrator credentials of a new tenant."""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field
from typing import Callable, Optional

from passlib.context import CryptContext

from onboarding.core.config import settings

# No 0/O, 1/I/l to keep passwords readable when copied by hand
PASSWORD_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZabcdefghjkmnpqrstuvwxyz23456789"
PASSWORD_LENGTH = 10
LOGIN_FALLBACK = "admin"
LOGIN_SUFFIX_DIGITS = 4
WIDE_LOGIN_SUFFIX_DIGITS = 8

_LOGIN_STRIP = re.compile(r"[^a-z0-9]")

pwd_context = CryptContext(schemes=[settings.PASSWORD_HASH_SCHEME], deprecated="auto")


@dataclass(frozen=True)
class AdminCredentials:
    login: str
    password: str = field(repr=False)


def generate_password(length: int = PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def login_base(email: str) -> str:
    local_part = email.split("@", 1)[0].lower()
    return _LOGIN_STRIP.sub("", local_part) or LOGIN_FALLBACK


def generate_login(email: str, digits: int = LOGIN_SUFFIX_DIGITS) -> str:
    return f"{login_base(email)}{secrets.randbelow(10 ** digits):0{digits}d}"


class LoginUnavailableError(ValueError):
    """No free login could be generated for an email address."""


def generate_credentials(
    email: str,
    *,
    is_taken: Optional[Callable[[str], bool]] = None,
    attempts: int = 5,
) -> AdminCredentials:
    """Build a login for ``email`` that ``is_taken`` reports as free, plus a password.

    After ``attempts`` taken logins the numeric suffix is widened; if those are
    taken too :class:`LoginUnavailableError` is raised.
    """

    for digits in (LOGIN_SUFFIX_DIGITS, WIDE_LOGIN_SUFFIX_DIGITS):
        for _ in range(attempts):
            login = generate_login(email, digits)
            if is_taken is None or not is_taken(login):
                return AdminCredentials(login=login, password=generate_password())
    raise LoginUnavailableError(f"No free login available for {login_base(email)}")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, hashed: str) -> bool:
    return pwd_context.verify(password, hashed)


__all__ = [
    "AdminCredentials",
    "LoginUnavailableError",
    "PASSWORD_ALPHABET",
    "PASSWORD_LENGTH",
    "generate_credentials",
    "generate_login",
    "generate_password",
    "hash_password",
    "login_base",
    "verify_password",
]
