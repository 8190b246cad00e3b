"""
Travlr Auth - Account Role Script

Direct administrative mutation of an account's role. No HTTP endpoint
changes roles; this script is the only way to promote or demote.

Usage:
    python -m scripts.set_role ana@x.com admin
    python -m scripts.set_role ana@x.com user --database-url sqlite:///./travlr.db
"""

import argparse
import sys

from travlr.auth.database import get_engine, get_session_factory, init_db
from travlr.auth.models import Role
from travlr.auth.store import CredentialStore


def set_role(store: CredentialStore, email: str, role: Role) -> bool:
    """
    Returns:
        True if the account exists and was updated
    """
    account = store.find_by_email(email)
    if account is None:
        return False

    account.role = role
    store.save(account)
    return True


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Set the role of a Travlr account")
    parser.add_argument("email")
    parser.add_argument("role", choices=[r.value for r in Role])
    parser.add_argument("--database-url", default=None)
    args = parser.parse_args(argv)

    engine = get_engine(args.database_url)
    init_db(engine)
    store = CredentialStore(get_session_factory(engine))

    if not set_role(store, args.email, Role(args.role)):
        print(f"No account for {args.email}")
        return 1

    print(f"{args.email} is now {args.role}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
