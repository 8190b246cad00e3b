"""
Travlr Auth - Password Reset Tokens

One-time reset tokens for the forgot/reset flow.

The plaintext token (32 random bytes, 64 hex chars) goes to the user once,
inside the reset link. Only its SHA-256 digest and an expiry are stored on
the account. Redemption sets the new password and clears both token fields
in one conditional update that only matches while the digest is still
stored, so a token can be redeemed at most once even under concurrency.

Security:
- Plaintext tokens are never stored or logged here
- Malformed tokens are rejected before any hashing or lookup
- Digest match is re-checked with constant-time comparison
"""

import hashlib
import hmac
import secrets
import string
from datetime import datetime, timedelta
from typing import Callable, Optional

from travlr.auth.errors import InvalidOrExpiredTokenError
from travlr.auth.models import Account, utcnow
from travlr.auth.password import hash_password
from travlr.auth.store import CredentialStore


RESET_TOKEN_BYTES = 32
RESET_TOKEN_LENGTH = RESET_TOKEN_BYTES * 2
RESET_TOKEN_EXPIRE_MINUTES = 15

_HEX_DIGITS = frozenset(string.hexdigits)


def hash_reset_token(token: str) -> str:
    """SHA-256 hex digest of a plaintext reset token."""
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def _well_formed(token) -> bool:
    return (
        isinstance(token, str)
        and len(token) == RESET_TOKEN_LENGTH
        and all(c in _HEX_DIGITS for c in token)
    )


class ResetTokenService:
    """
    Issues and redeems password-reset tokens.

    Args:
        store: Credential store holding the token digests
        lifetime: Validity window of an issued token
        clock: Returns the current naive-UTC time
    """

    def __init__(
        self,
        store: CredentialStore,
        lifetime: timedelta = timedelta(minutes=RESET_TOKEN_EXPIRE_MINUTES),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.lifetime = lifetime
        self.clock = clock

    def issue(self, account: Account) -> str:
        """
        Generate a token, store its digest and expiry on the account.

        A second issue for the same account overwrites the first; only the
        latest token stays redeemable.

        Returns:
            The plaintext token (the only copy)
        """
        token = secrets.token_hex(RESET_TOKEN_BYTES)
        account.reset_token_hash = hash_reset_token(token)
        account.reset_token_expires = self.clock() + self.lifetime
        self.store.save(account)
        return token

    def redeem(self, token: Optional[str], new_password: str) -> Account:
        """
        Exchange a valid token for a password change.

        Args:
            token: Plaintext token from the reset link
            new_password: Replacement plaintext password

        Returns:
            The updated account

        Raises:
            InvalidOrExpiredTokenError: token missing, malformed,
                unmatched or expired
        """
        if not _well_formed(token):
            raise InvalidOrExpiredTokenError()

        now = self.clock()
        digest = hash_reset_token(token)
        account = self.store.find_by_reset_token(digest, now)
        if account is None or not hmac.compare_digest(
            account.reset_token_hash or "", digest
        ):
            raise InvalidOrExpiredTokenError()

        updated = self.store.redeem_reset_token(
            account.id, digest, now, hash_password(new_password)
        )
        if updated is None:
            # Lost a race with another redemption, or the token was reissued
            raise InvalidOrExpiredTokenError()
        return updated
