"""
Travlr Auth - Session Token Management

Creates and validates signed JWT session tokens carrying:
- Account ID (sub)
- Email and display name
- Role (for authorization)
- Issued-at and expiry (7 days by default)

Security:
- HMAC-signed with SECRET_KEY; any tampering fails verification
- Expiry is checked against the injected clock, not the wall clock,
  so TokenExpiredError is distinguishable from TokenInvalidError
- No revocation: a token is valid for its full lifetime once issued
"""

import calendar
from datetime import datetime, timedelta
from typing import Callable

from jose import jwt, JWTError
from pydantic import BaseModel, Field, ValidationError

from travlr.auth.errors import TokenExpiredError, TokenInvalidError
from travlr.auth.models import Account, Role, utcnow


SESSION_TOKEN_EXPIRE_DAYS = 7


def _timestamp(moment: datetime) -> int:
    return calendar.timegm(moment.utctimetuple())


class SessionClaim(BaseModel):
    """
    Verified session token payload.

    Attributes:
        sub: Account ID
        email: Account email at issuance
        name: Display name at issuance
        role: Account role at issuance
        iat: Issued-at (unix seconds)
        exp: Expiration (unix seconds)
    """
    sub: str = Field(..., description="Account ID")
    email: str = Field(..., description="Account email")
    name: str = Field(..., description="Display name")
    role: Role = Field(..., description="Account role")
    iat: int = Field(..., description="Issued at time")
    exp: int = Field(..., description="Expiration time")


class SessionTokenService:
    """
    Issues and verifies session tokens.

    Args:
        secret_key: HMAC signing secret
        algorithm: JWT algorithm (HS256 by default)
        lifetime: Token lifetime
        clock: Returns the current naive-UTC time
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        lifetime: timedelta = timedelta(days=SESSION_TOKEN_EXPIRE_DAYS),
        clock: Callable[[], datetime] = utcnow,
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.lifetime = lifetime
        self.clock = clock

    @property
    def expires_in(self) -> int:
        """Token lifetime in seconds for responses."""
        return int(self.lifetime.total_seconds())

    def issue(self, account: Account) -> str:
        """
        Sign a claim built from the account's current state.

        Returns:
            Encoded JWT string
        """
        now = self.clock()
        payload = {
            "sub": str(account.id),
            "email": account.email,
            "name": account.name,
            "role": Role(account.role).value,
            "iat": _timestamp(now),
            "exp": _timestamp(now + self.lifetime),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: str) -> SessionClaim:
        """
        Verify signature and expiry of a session token.

        Raises:
            TokenInvalidError: bad signature or malformed token/claims
            TokenExpiredError: current time is past exp
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={"verify_exp": False},
            )
            claim = SessionClaim(**payload)
        except (JWTError, ValidationError, AttributeError, TypeError):
            raise TokenInvalidError()

        if _timestamp(self.clock()) > claim.exp:
            raise TokenExpiredError()
        return claim
