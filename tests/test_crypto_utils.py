import string

import pytest

from d3server.crypto_utils import generate_salt, hash_password, verify_password


def test_default_salt_length():
    assert len(generate_salt()) == 32


@pytest.mark.parametrize("length", [0, 1, 8, 33])
def test_salt_length_and_alphabet(length):
    salt = generate_salt(length)
    assert len(salt) == 2 * length
    assert set(salt) <= set(string.hexdigits.lower())


def test_salts_are_random():
    assert len({generate_salt() for _ in range(20)}) == 20


def test_negative_salt_length():
    with pytest.raises(ValueError):
        generate_salt(-1)


def test_hash_is_deterministic_hex():
    password = "password"
    first = hash_password(password, "abcd")
    assert first == hash_password(password, "abcd")
    assert len(first) == 64
    assert set(first) <= set(string.hexdigits.lower())


def test_hash_depends_on_salt_and_password():
    password = "password"
    base = hash_password(password, "abcd")
    assert hash_password(password, "abce") != base
    assert hash_password("secret", "abcd") != base


def test_verify_password():
    password = "password"
    salt = generate_salt()
    stored = hash_password(password, salt)
    assert verify_password(password, stored, salt) is True
    assert verify_password("secret", stored, salt) is False
    assert verify_password(password, stored, generate_salt()) is False