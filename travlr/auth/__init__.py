"""
Travlr Auth - Authentication Package

- PBKDF2-SHA512 password hashing
- Signed JWT session tokens (7 days)
- One-time password reset tokens (15 minutes, digest-only storage)
- Role gate over verified claims
"""

from travlr.auth.models import Account, Role
from travlr.auth.dependencies import get_current_claim, require_role, authorize
from travlr.auth.tokens import SessionClaim, SessionTokenService

__all__ = [
    "Account",
    "Role",
    "SessionClaim",
    "SessionTokenService",
    "get_current_claim",
    "require_role",
    "authorize",
]
