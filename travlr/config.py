"""
Travlr Auth - Configuration Management

Centralized configuration using Pydantic Settings.
All secrets and connection strings are loaded from environment variables.

Security: No secrets are hardcoded. Use .env for local development.
"""

import logging
import secrets
from typing import List

from pydantic import model_validator
from pydantic_settings import BaseSettings


logger = logging.getLogger("travlr.config")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    Attributes:
        ENVIRONMENT: "production" disables development diagnostics
        SECRET_KEY: JWT signing key for session tokens
        SESSION_TOKEN_EXPIRE_DAYS: Lifetime of a signed session token
        RESET_TOKEN_EXPIRE_MINUTES: Validity window of a password-reset token
        DATABASE_URL: SQLAlchemy URL of the credential store
        CLIENT_URL: Base URL of the client app (reset links point here)
        FROM_EMAIL: Sender address for outgoing mail
        SMTP_*: Mail transport settings
        ALLOWED_ORIGINS: CORS allowed origins for the frontend
    """

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Security
    SECRET_KEY: str = ""  # Must be set via environment in production
    JWT_ALGORITHM: str = "HS256"
    SESSION_TOKEN_EXPIRE_DAYS: int = 7
    RESET_TOKEN_EXPIRE_MINUTES: int = 15

    # Database (PostgreSQL for production, SQLite for development)
    DATABASE_URL: str = "sqlite:///./travlr.db"

    # Password reset mail
    CLIENT_URL: str = "http://localhost:4200"
    FROM_EMAIL: str = "no-reply@travlr.local"
    SMTP_HOST: str = ""  # Empty: mail is logged, not sent (development only)
    SMTP_PORT: int = 465
    SMTP_SECURE: bool = True
    SMTP_USER: str = ""
    SMTP_PASS: str = ""

    # CORS
    ALLOWED_ORIGINS: List[str] = ["http://localhost:4200"]

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True
        extra = "ignore"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    @model_validator(mode="after")
    def validate_secret_key(self) -> "Settings":
        """
        Outside production a missing SECRET_KEY is generated, so tokens
        do not survive a restart. In production it is a startup failure.
        """
        if not self.SECRET_KEY:
            if self.is_production:
                raise ValueError("SECRET_KEY is required in production")
            self.SECRET_KEY = secrets.token_hex(32)
            logger.warning(
                "Using auto-generated SECRET_KEY; session tokens will not "
                "survive a restart"
            )
        return self

    @model_validator(mode="after")
    def validate_mail_transport(self) -> "Settings":
        """Production must deliver reset mail; the log-only transport is for development."""
        if self.is_production and not self.SMTP_HOST:
            raise ValueError("SMTP_HOST is required in production")
        return self


settings = Settings()
