"""
Travlr Auth - Authentication Request/Response Schemas

Pydantic models for API request validation and response serialization.
Separates API contracts from database models.

Request fields are optional at the schema level: missing or empty values
are reported by the service as MissingFieldsError (400), not as a 422.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, Field


class RegisterRequest(BaseModel):
    """Request body for POST /auth/register."""
    name: Optional[str] = Field(default=None, description="Display name")
    email: Optional[str] = Field(default=None, description="Email address")
    password: Optional[str] = Field(default=None, description="Password")


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: Optional[str] = Field(default=None, description="Email address")
    password: Optional[str] = Field(default=None, description="Password")


class TokenResponse(BaseModel):
    """Response body for successful register/login."""
    access_token: str = Field(..., description="Signed session token")
    token_type: str = Field(default="bearer", description="Token type")
    expires_in: int = Field(..., description="Seconds until token expires")


class ForgotRequest(BaseModel):
    """Request body for POST /auth/forgot."""
    email: Optional[str] = Field(default=None, description="Account email")


class ForgotResponse(BaseModel):
    """Generic acknowledgement; dev_reset_url only outside production."""
    message: str
    dev_reset_url: Optional[str] = None


class ResetRequest(BaseModel):
    """Request body for POST /auth/reset and /auth/reset/{token}."""
    token: Optional[str] = Field(default=None, description="Reset token")
    password: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("password", "new_password", "newPassword"),
        description="New password",
    )


class MessageResponse(BaseModel):
    message: str


class ClaimResponse(BaseModel):
    """Response body for GET /auth/me."""
    id: str
    email: str
    name: str
    role: str
    expires_at: int


class ErrorResponse(BaseModel):
    """Standard error response."""
    detail: str
    error_code: Optional[str] = None
