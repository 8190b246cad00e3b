"""
Travlr Auth - Credential Store

Repository over the accounts table. Route and service code never touches
SQL directly. Emails are normalized (trimmed, lowercased) on the way in,
so every lookup is case-insensitive.

Concurrency: uniqueness is enforced by the database constraint. Two racing
registrations for one email resolve to one success and one
DuplicateIdentityError. Saves are last-writer-wins. Reset redemption is a
conditional update, so one token can only ever be redeemed once.
"""

from datetime import datetime
from typing import Callable, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from travlr.auth.errors import DuplicateIdentityError
from travlr.auth.models import Account, normalize_email, utcnow
from travlr.auth.password import PasswordHash


class CredentialStore:
    """
    Usage:
        store = CredentialStore(get_session_factory(engine))
        account = store.create(Account(name="Ana", email="ana@x.com"))
        store.find_by_email("  ANA@x.com ")
    """

    def __init__(
        self,
        session_factory: Callable[[], Session],
        clock: Callable[[], datetime] = utcnow,
    ):
        self._session_factory = session_factory
        self.clock = clock

    def find_by_email(self, email: str) -> Optional[Account]:
        with self._session_factory() as db:
            statement = select(Account).where(Account.email == normalize_email(email))
            return db.exec(statement).first()

    def find_by_reset_token(self, token_hash: str, now: datetime) -> Optional[Account]:
        """
        Find the account holding this reset digest with an expiry strictly
        after `now`. A token expiring exactly at `now` is expired.
        """
        with self._session_factory() as db:
            statement = select(Account).where(
                Account.reset_token_hash == token_hash,
                Account.reset_token_expires > now,
            )
            return db.exec(statement).first()

    def create(self, account: Account) -> Account:
        """
        Insert a new account.

        Raises:
            DuplicateIdentityError: email already registered
        """
        account.email = normalize_email(account.email)

        with self._session_factory() as db:
            existing = db.exec(
                select(Account).where(Account.email == account.email)
            ).first()
            if existing:
                raise DuplicateIdentityError()

            db.add(account)
            try:
                db.commit()
            except IntegrityError:
                # Lost a race with a concurrent registration
                db.rollback()
                raise DuplicateIdentityError()
            db.refresh(account)
            return account

    def save(self, account: Account) -> Account:
        """Persist all mutated fields of an account in one write."""
        account.email = normalize_email(account.email)
        account.updated_at = self.clock()

        with self._session_factory() as db:
            account = db.merge(account)
            db.commit()
            db.refresh(account)
            return account

    def clear_reset_token(self, account: Account) -> Account:
        account.clear_reset_token()
        return self.save(account)

    def redeem_reset_token(
        self,
        account_id,
        token_hash: str,
        now: datetime,
        password: PasswordHash,
    ) -> Optional[Account]:
        """
        Set new password material and clear the reset token, but only if
        the account still holds `token_hash` with an expiry after `now`.

        Returns:
            The updated account, or None if the token was already
            redeemed, replaced or expired
        """
        statement = (
            update(Account)
            .where(
                Account.id == account_id,
                Account.reset_token_hash == token_hash,
                Account.reset_token_expires > now,
            )
            .values(
                password_hash=password.derived_key,
                salt=password.salt,
                reset_token_hash=None,
                reset_token_expires=None,
                updated_at=self.clock(),
            )
            .execution_options(synchronize_session=False)
        )

        with self._session_factory() as db:
            result = db.execute(statement)
            if result.rowcount != 1:
                db.rollback()
                return None
            db.commit()
            return db.get(Account, account_id)
