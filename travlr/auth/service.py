"""
Travlr Auth - Authentication Service

Composes the password hasher, credential store, reset tokens, session
tokens and mail transport into the four account flows:

- register: create an account, return a session token
- login:    verify credentials, return a session token
- forgot:   issue a reset token and mail the link (always acknowledges)
- reset:    redeem a reset token for a new password

All methods are synchronous and CPU/IO bound; the HTTP layer runs them
in a thread pool.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from urllib.parse import urlencode

from travlr.auth.errors import (
    DuplicateIdentityError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    MalformedInputError,
    MissingFieldsError,
)
from travlr.auth.models import Account, Role
from travlr.auth.password import burn_password_check, check_password, set_password
from travlr.auth.reset_tokens import ResetTokenService
from travlr.auth.store import CredentialStore
from travlr.auth.tokens import SessionTokenService
from travlr.mail import Mailer, MailMessage


logger = logging.getLogger("travlr.auth")


FORGOT_ACKNOWLEDGEMENT = (
    "If that email exists, we'll send instructions to reset your password."
)
RESET_CONFIRMATION = "Password updated. You can now log in."
RESET_SUBJECT = "Reset your Travlr password"


@dataclass
class ForgotResult:
    """Outcome of a forgot request. dev_reset_url is only set outside production."""
    message: str = FORGOT_ACKNOWLEDGEMENT
    dev_reset_url: Optional[str] = None


def _blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def _malformed(*values: Optional[str]) -> bool:
    """True if any value cannot be encoded as UTF-8 text."""
    for value in values:
        try:
            str(value).encode("utf-8")
        except UnicodeEncodeError:
            return True
    return False


class AuthService:
    """
    Args:
        store: Credential store
        session_tokens: Session token issuer/verifier
        reset_tokens: Reset token issuer/redeemer
        mailer: Mail transport for reset links
        client_url: Base URL of the client app; links go to
            {client_url}/reset-password?token=...
        from_email: Sender address for reset mail
        expose_reset_url: Echo the reset link in forgot responses
            (development only)
    """

    def __init__(
        self,
        store: CredentialStore,
        session_tokens: SessionTokenService,
        reset_tokens: ResetTokenService,
        mailer: Mailer,
        client_url: str,
        from_email: str,
        expose_reset_url: bool = False,
    ):
        self.store = store
        self.session_tokens = session_tokens
        self.reset_tokens = reset_tokens
        self.mailer = mailer
        self.client_url = client_url.rstrip("/")
        self.from_email = from_email
        self.expose_reset_url = expose_reset_url

    def register(self, name: Optional[str], email: Optional[str], password: Optional[str]) -> str:
        """
        Create a user account and return a signed session token.

        Raises:
            MissingFieldsError: name, email or password empty
            MalformedInputError: a field is not encodable text
            DuplicateIdentityError: email already registered
        """
        if _blank(name) or _blank(email) or _blank(password):
            raise MissingFieldsError("All fields required")
        if _malformed(name, email, password):
            raise MalformedInputError()

        account = Account(name=name.strip(), email=email, role=Role.USER)
        set_password(account, password)

        try:
            account = self.store.create(account)
        except DuplicateIdentityError:
            logger.info("Registration rejected: email already registered")
            raise

        logger.info("Account registered: %s", account.email)
        return self.session_tokens.issue(account)

    def login(self, email: Optional[str], password: Optional[str]) -> str:
        """
        Verify credentials and return a signed session token.

        Raises:
            MissingFieldsError: email or password empty
            MalformedInputError: a field is not encodable text
            InvalidCredentialsError: unknown email or wrong password
        """
        if _blank(email) or _blank(password):
            raise MissingFieldsError("All fields required")
        if _malformed(email, password):
            raise MalformedInputError()

        account = self.store.find_by_email(email)
        if account is None:
            # Same derivation cost as a real check
            burn_password_check(password)
            raise InvalidCredentialsError()

        if not check_password(account, password):
            logger.info("Login failed for %s", account.email)
            raise InvalidCredentialsError()

        return self.session_tokens.issue(account)

    def forgot(self, email: Optional[str]) -> ForgotResult:
        """
        Start a password reset.

        The acknowledgement is identical whether or not the account exists,
        and internal failures never reach the caller. If the reset mail
        cannot be sent, the token is cleared again so no redeemable token
        is left behind.

        Raises:
            MissingFieldsError: email empty
        """
        if _blank(email):
            raise MissingFieldsError("Email required")

        result = ForgotResult()
        if _malformed(email):
            return result

        try:
            account = self.store.find_by_email(email)
            if account is None:
                return result

            token = self.reset_tokens.issue(account)
            reset_url = self.reset_url(token)
            self.mailer.send(MailMessage(
                to=account.email,
                sender=self.from_email,
                subject=RESET_SUBJECT,
                html=self._reset_html(reset_url),
            ))

            if self.expose_reset_url:
                result.dev_reset_url = reset_url
            return result
        except Exception:
            logger.exception("Password reset request failed")
            self._rollback_reset_token(email)
            return ForgotResult()

    def reset(self, token: Optional[str], new_password: Optional[str]) -> str:
        """
        Redeem a reset token. Does not log the user in.

        Raises:
            MissingFieldsError: new password empty
            MalformedInputError: new password is not encodable text
            InvalidOrExpiredTokenError: token missing, malformed, unmatched
                or expired
        """
        if _blank(new_password):
            raise MissingFieldsError("New password required")
        if _malformed(token):
            raise InvalidOrExpiredTokenError()
        if _malformed(new_password):
            raise MalformedInputError()

        account = self.reset_tokens.redeem(token, new_password)
        logger.info("Password reset completed for %s", account.email)
        return RESET_CONFIRMATION

    def reset_url(self, token: str) -> str:
        return f"{self.client_url}/reset-password?{urlencode({'token': token})}"

    def _reset_html(self, reset_url: str) -> str:
        minutes = int(self.reset_tokens.lifetime.total_seconds() // 60)
        return (
            "<p>You requested a password reset for your Travlr account.</p>\n"
            f'<p><a href="{reset_url}">Click here to reset your password</a></p>\n'
            f"<p>This link expires in {minutes} minutes. "
            "If you didn't request this, ignore this email.</p>\n"
        )

    def _rollback_reset_token(self, email: str) -> None:
        """
        Best-effort compensation: re-fetch and clear token fields. If this
        also fails the token stays redeemable until it expires.
        """
        try:
            account = self.store.find_by_email(email)
            if account is not None and account.has_reset_token:
                self.store.clear_reset_token(account)
                logger.info("Reset token rolled back for %s", account.email)
        except Exception:
            logger.exception("Reset token rollback failed")
