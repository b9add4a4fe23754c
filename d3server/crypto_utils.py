"""Salt generation and salted password hashing."""

from __future__ import annotations

import hashlib
import hmac
import secrets

DEFAULT_SALT_LENGTH = 16


def generate_salt(length: int = DEFAULT_SALT_LENGTH) -> str:
    """Return ``length`` random bytes as a lower-case hex string."""
    if length < 0:
        raise ValueError(f"salt length must not be negative: {length}")
    return secrets.token_bytes(length).hex()


def hash_password(password: str, salt: str) -> str:
    """Hash ``salt + password`` with SHA-256 and return the hex digest."""
    return hashlib.sha256((salt + password).encode("utf-8")).hexdigest()


def verify_password(password: str, stored_hash: str, salt: str) -> bool:
    """Whether ``password`` with ``salt`` hashes to ``stored_hash``."""
    return hmac.compare_digest(hash_password(password, salt), stored_hash)