"""
Travlr Auth - Security Dependencies

FastAPI dependencies for authentication and authorization.

Usage:
    @router.get("/protected")
    async def protected_route(claim: SessionClaim = Depends(get_current_claim)):
        ...

    @router.post("/admin-only")
    @require_role(Role.ADMIN)
    async def admin_route(claim: SessionClaim = Depends(get_current_claim)):
        ...

Security:
- The gate only verifies the signed token; it never reads the store
- Role checks are a pure function of the verified claim
"""

from functools import wraps
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from travlr.auth.errors import ForbiddenError, TokenInvalidError, UnauthorizedError
from travlr.auth.models import Role
from travlr.auth.service import AuthService
from travlr.auth.tokens import SessionClaim, SessionTokenService


# HTTP Bearer scheme for token extraction
security = HTTPBearer(auto_error=False)


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_session_tokens(request: Request) -> SessionTokenService:
    return request.app.state.session_tokens


def authorize(claim: SessionClaim, required_role: Role) -> bool:
    """Allow iff the claim carries exactly the required role."""
    return claim.role == required_role


async def get_current_claim(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    session_tokens: SessionTokenService = Depends(get_session_tokens),
) -> SessionClaim:
    """
    Validate the bearer token and return its claim.

    The claim is also attached to request.state.auth for downstream code.

    Raises:
        UnauthorizedError: header missing or malformed, token invalid or expired
    """
    if not credentials or not credentials.credentials:
        raise UnauthorizedError("Missing or invalid Authorization header")

    try:
        claim = session_tokens.verify(credentials.credentials)
    except TokenInvalidError:
        raise UnauthorizedError("Token validation error")

    request.state.auth = claim
    return claim


def require_role(role: Role):
    """
    Decorator requiring a specific role on a route that depends on
    get_current_claim under the parameter name `claim`.

    Raises:
        UnauthorizedError: no verified claim present
        ForbiddenError: claim role differs from `role`
    """
    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            claim: Optional[SessionClaim] = kwargs.get("claim")

            if claim is None:
                raise UnauthorizedError()

            if not authorize(claim, role):
                raise ForbiddenError(f"Requires role: {role.value}")

            return await func(*args, **kwargs)
        return wrapper
    return decorator
