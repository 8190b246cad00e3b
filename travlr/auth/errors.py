"""
Travlr Auth - Error Taxonomy

Every failure a caller can observe is an AuthError subclass with a fixed,
client-safe message. Internal exception text never reaches a response.
"""

from typing import Dict, Optional


class AuthError(Exception):
    """Base class for client-visible authentication failures."""
    status_code: int = 400
    detail: str = "Authentication error"
    error_code: str = "auth_error"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, detail: Optional[str] = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class MissingFieldsError(AuthError):
    """Caller input incomplete."""
    detail = "All fields required"
    error_code = "missing_fields"


class MalformedInputError(AuthError):
    """Caller input present but not encodable text (e.g. lone surrogates)."""
    detail = "Invalid input"
    error_code = "invalid_input"


class DuplicateIdentityError(AuthError):
    """Email already registered. Reported without detail."""
    detail = "Registration error"
    error_code = "registration_error"


class InvalidCredentialsError(AuthError):
    """Same message whether the account is absent or the password is wrong."""
    status_code = 401
    detail = "Invalid credentials"
    error_code = "invalid_credentials"


class InvalidOrExpiredTokenError(AuthError):
    """Reset token malformed, unmatched or expired (indistinguishable)."""
    detail = "Invalid or expired reset token"
    error_code = "invalid_reset_token"


class TokenInvalidError(AuthError):
    """Session token has a bad signature or structure."""
    status_code = 401
    detail = "Token validation error"
    error_code = "token_invalid"


class TokenExpiredError(TokenInvalidError):
    """Session token is past its expiry."""
    detail = "Token has expired"
    error_code = "token_expired"


class UnauthorizedError(AuthError):
    status_code = 401
    detail = "Unauthorized"
    error_code = "unauthorized"
    headers = {"WWW-Authenticate": "Bearer"}


class ForbiddenError(AuthError):
    status_code = 403
    detail = "Forbidden"
    error_code = "forbidden"
