"""
Travlr Auth - Password Hashing Utilities

Salted PBKDF2-HMAC-SHA512 password hashing.
Parameters match existing Travlr account records
(hex salt used as the salt bytes, 1000 iterations, 64-byte key),
so those accounts keep verifying.

Security:
- Never log or expose plaintext passwords
- Fresh 128-bit salt on every set (no reuse across password changes)
- Constant-time comparison of derived keys
"""

import hashlib
import hmac
import secrets
from typing import NamedTuple


PBKDF2_DIGEST = "sha512"
PBKDF2_ITERATIONS = 1000
DERIVED_KEY_BYTES = 64
SALT_BYTES = 16


class PasswordHash(NamedTuple):
    """Stored password material: derived key and the salt it was made with."""
    derived_key: str
    salt: str


def _derive(password: str, salt: str) -> str:
    return hashlib.pbkdf2_hmac(
        PBKDF2_DIGEST,
        password.encode("utf-8"),
        salt.encode("utf-8"),
        PBKDF2_ITERATIONS,
        DERIVED_KEY_BYTES,
    ).hex()


def hash_password(password: str) -> PasswordHash:
    """
    Derive password material from a plaintext password.

    Args:
        password: Plaintext password

    Returns:
        PasswordHash with hex derived key and hex salt

    Example:
        >>> stored = hash_password("pw123")
        >>> len(stored.derived_key), len(stored.salt)
        (128, 32)
    """
    salt = secrets.token_hex(SALT_BYTES)
    return PasswordHash(_derive(password, salt), salt)


def verify_password(plain_password: str, derived_key: str, salt: str) -> bool:
    """
    Verify a password against stored material.

    Malformed input (None, non-string) is a non-match, never an error.

    Returns:
        True if password matches, False otherwise
    """
    try:
        candidate = _derive(plain_password, salt)
        return hmac.compare_digest(candidate, derived_key)
    except (AttributeError, TypeError, ValueError):
        return False


def set_password(account, password: str) -> None:
    """Replace an account's password material (new salt, new key)."""
    account.password_hash, account.salt = hash_password(password)


def check_password(account, password: str) -> bool:
    """Verify a password against an account's stored material."""
    return verify_password(password, account.password_hash, account.salt)


# Derived once so failed lookups can pay the same cost as a real check.
_DUMMY_HASH = hash_password("travlr-timing-equalization")


def burn_password_check(password: str) -> None:
    """Run a derivation against throwaway material (login timing equalization)."""
    verify_password(password, _DUMMY_HASH.derived_key, _DUMMY_HASH.salt)
