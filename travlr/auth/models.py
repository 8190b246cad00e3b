"""
Travlr Auth - Credential Database Models

SQLModel-based account model for authentication.
Uses PostgreSQL for production, SQLite for local development.

Security:
- Passwords stored as PBKDF2 derived keys plus per-account salt only
- Reset tokens stored as SHA-256 digests only
- All timestamps in UTC (naive, as stored by SQLite)
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, String, DateTime, Enum as SQLEnum


def utcnow() -> datetime:
    """Current UTC time as a naive datetime (the stored representation)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def normalize_email(email: str) -> str:
    """Emails are matched case-insensitively and without surrounding whitespace."""
    return email.strip().lower()


class Role(str, Enum):
    """
    Account roles.

    Roles are only changed by direct administrative mutation
    (see scripts/set_role.py); no endpoint mutates them.
    """
    USER = "user"
    ADMIN = "admin"


class Account(SQLModel, table=True):
    """
    One record per registered account.

    Attributes:
        id: Unique identifier (UUIDv4)
        email: Login identifier (unique, normalized, indexed)
        name: Display name
        role: Authorization role
        password_hash: PBKDF2-SHA512 derived key (hex)
        salt: Per-password random salt (hex)
        reset_token_hash: SHA-256 digest of the outstanding reset token
        reset_token_expires: Expiry of the outstanding reset token
        created_at: Account creation timestamp (UTC)
        updated_at: Last modification timestamp (UTC)

    reset_token_hash and reset_token_expires are set and cleared together.
    """
    __tablename__ = "accounts"

    id: UUID = Field(
        default_factory=uuid4,
        primary_key=True,
        description="Unique account identifier"
    )
    email: str = Field(
        sa_column=Column(String(255), unique=True, index=True, nullable=False),
        description="Account email address (login identifier)"
    )
    name: str = Field(
        sa_column=Column(String(255), nullable=False),
        description="Display name"
    )
    role: Role = Field(
        default=Role.USER,
        sa_column=Column(SQLEnum(Role), nullable=False, default=Role.USER),
        description="Account role for authorization"
    )
    password_hash: str = Field(
        default="",
        sa_column=Column(String(128), nullable=False),
        description="PBKDF2 derived key"
    )
    salt: str = Field(
        default="",
        sa_column=Column(String(64), nullable=False),
        description="Password salt"
    )
    reset_token_hash: Optional[str] = Field(
        default=None,
        sa_column=Column(String(64), nullable=True, index=True),
        description="SHA-256 digest of the reset token"
    )
    reset_token_expires: Optional[datetime] = Field(
        default=None,
        sa_column=Column(DateTime, nullable=True),
        description="Reset token expiry"
    )
    created_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow),
        description="Account creation timestamp"
    )
    updated_at: datetime = Field(
        default_factory=utcnow,
        sa_column=Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow),
        description="Last update timestamp"
    )

    def clear_reset_token(self) -> None:
        self.reset_token_hash = None
        self.reset_token_expires = None

    @property
    def has_reset_token(self) -> bool:
        return self.reset_token_hash is not None
