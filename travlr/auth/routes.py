"""
Travlr Auth - Authentication Routes

API endpoints for the account flows:
- POST /auth/register        - Create account, return session token
- POST /auth/login           - Verify credentials, return session token
- POST /auth/forgot          - Mail a password reset link (always 200)
- POST /auth/reset           - Redeem reset token from body
- POST /auth/reset/{token}   - Redeem reset token from path (body wins)
- GET  /auth/me              - Verified claim of the bearer token

Password hashing is CPU bound; service calls run in the thread pool so
they do not block other requests on the event loop.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from starlette.concurrency import run_in_threadpool

from travlr.auth.dependencies import get_auth_service, get_current_claim
from travlr.auth.schemas import (
    ClaimResponse,
    ErrorResponse,
    ForgotRequest,
    ForgotResponse,
    LoginRequest,
    MessageResponse,
    RegisterRequest,
    ResetRequest,
    TokenResponse,
)
from travlr.auth.service import AuthService
from travlr.auth.tokens import SessionClaim


router = APIRouter(prefix="/auth", tags=["authentication"])


def _token_response(service: AuthService, token: str) -> TokenResponse:
    return TokenResponse(
        access_token=token,
        token_type="bearer",
        expires_in=service.session_tokens.expires_in,
    )


@router.post(
    "/register",
    response_model=TokenResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Create an account",
)
async def register(
    body: Optional[RegisterRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """
    Register a new account with role "user" and log it in.

    Raises:
        400: Missing fields or email already registered
    """
    body = body or RegisterRequest()
    token = await run_in_threadpool(service.register, body.name, body.email, body.password)
    return _token_response(service, token)


@router.post(
    "/login",
    response_model=TokenResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
    summary="Authenticate with email and password",
)
async def login(
    body: Optional[LoginRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """
    Raises:
        400: Missing fields
        401: Invalid credentials
    """
    body = body or LoginRequest()
    token = await run_in_threadpool(service.login, body.email, body.password)
    return _token_response(service, token)


@router.post(
    "/forgot",
    response_model=ForgotResponse,
    response_model_exclude_none=True,
    responses={400: {"model": ErrorResponse}},
    summary="Request a password reset link",
)
async def forgot(
    body: Optional[ForgotRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """
    Always returns the same acknowledgement, whether or not the account
    exists and whether or not the mail went out.
    """
    body = body or ForgotRequest()
    result = await run_in_threadpool(service.forgot, body.email)
    return ForgotResponse(message=result.message, dev_reset_url=result.dev_reset_url)


async def _reset(service: AuthService, body: Optional[ResetRequest], path_token: Optional[str]):
    body = body or ResetRequest()
    token = body.token or path_token
    message = await run_in_threadpool(service.reset, token, body.password)
    return MessageResponse(message=message)


@router.post(
    "/reset",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Complete a password reset",
)
async def reset(
    body: Optional[ResetRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """
    Raises:
        400: New password missing, or token invalid/expired
    """
    return await _reset(service, body, None)


@router.post(
    "/reset/{token}",
    response_model=MessageResponse,
    responses={400: {"model": ErrorResponse}},
    summary="Complete a password reset (token in path)",
)
async def reset_with_path_token(
    token: str,
    body: Optional[ResetRequest] = None,
    service: AuthService = Depends(get_auth_service),
):
    """A token in the request body takes precedence over the path."""
    return await _reset(service, body, token)


@router.get(
    "/me",
    response_model=ClaimResponse,
    responses={401: {"model": ErrorResponse}},
    summary="Get the verified session claim",
)
async def get_me(claim: SessionClaim = Depends(get_current_claim)):
    return ClaimResponse(
        id=claim.sub,
        email=claim.email,
        name=claim.name,
        role=claim.role.value,
        expires_at=claim.exp,
    )
