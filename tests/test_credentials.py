import re

import pytest

from onboarding.services.credentials import (
    PASSWORD_ALPHABET,
    LoginUnavailableError,
    generate_credentials,
    generate_password,
    hash_password,
    login_base,
    verify_password,
)


def test_login_base_is_sanitized_local_part():
    assert login_base("Ana.Maria+club@x.com") == "anamariaclub"
    assert login_base("...@x.com") == "admin"


def test_generated_login_has_four_digit_suffix():
    credentials = generate_credentials("ana@x.com")

    assert re.fullmatch(r"ana\d{4}", credentials.login)


def test_taken_logins_are_regenerated():
    seen = []

    def is_taken(login):
        seen.append(login)
        return len(seen) == 1

    credentials = generate_credentials("ana@x.com", is_taken=is_taken)

    assert len(seen) == 2
    assert credentials.login == seen[-1]


def test_suffix_is_widened_when_short_logins_are_exhausted():
    seen = []

    def is_taken(login):
        seen.append(login)
        return len(login) == len("ana") + 4

    credentials = generate_credentials("ana@x.com", is_taken=is_taken, attempts=3)

    assert len(seen) == 4
    assert re.fullmatch(r"ana\d{8}", credentials.login)


def test_exhausted_logins_raise_a_clear_error():
    with pytest.raises(LoginUnavailableError, match="ana"):
        generate_credentials("ana@x.com", is_taken=lambda login: True, attempts=2)


def test_password_avoids_ambiguous_characters():
    password = generate_password()

    assert len(password) == 10
    assert all(char in PASSWORD_ALPHABET for char in password)
    assert not set("0O1Il") & set(PASSWORD_ALPHABET)


def test_password_hash_is_md5_hex():
    hashed = hash_password("abc")

    assert hashed == "900150983cd24fb0d6963f7d28e17f72"
    assert verify_password("abc", hashed)
    assert not verify_password("abd", hashed)


def test_credentials_repr_hides_password():
    credentials = generate_credentials("ana@x.com")

    assert credentials.password not in repr(credentials)
