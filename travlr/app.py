"""
Travlr Auth - FastAPI Application Entrypoint

This module builds the FastAPI application with:
- CORS and security middleware
- Authentication routes and the authorization gate
- Credential store lifecycle management
- One exception handler for the auth error taxonomy

Collaborators (engine, mail transport, clock) are passed into
create_app(); nothing here is a process-wide singleton except the
default `app` built from environment settings.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.engine import Engine

from travlr.config import Settings, settings as default_settings
from travlr.gateway.middleware import SecurityMiddleware
from travlr.auth.database import get_engine, init_db, get_session_factory
from travlr.auth.errors import AuthError
from travlr.auth.models import utcnow
from travlr.auth.reset_tokens import ResetTokenService
from travlr.auth.routes import router as auth_router
from travlr.auth.service import AuthService
from travlr.auth.store import CredentialStore
from travlr.auth.tokens import SessionTokenService
from travlr.mail import LoggingMailer, Mailer, SMTPMailer


logger = logging.getLogger("travlr.app")

VERSION = "0.1.0"


def build_mailer(settings: Settings) -> Mailer:
    """SMTP when a host is configured, otherwise log-only (never in production)."""
    if not settings.SMTP_HOST:
        return LoggingMailer()
    return SMTPMailer(
        host=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        secure=settings.SMTP_SECURE,
        username=settings.SMTP_USER or None,
        password=settings.SMTP_PASS or None,
    )


def build_auth_service(
    settings: Settings,
    engine: Engine,
    mailer: Mailer,
    clock: Callable[[], datetime] = utcnow,
) -> AuthService:
    """Wire the auth components together around one credential store."""
    store = CredentialStore(get_session_factory(engine), clock=clock)
    session_tokens = SessionTokenService(
        secret_key=settings.SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM,
        lifetime=timedelta(days=settings.SESSION_TOKEN_EXPIRE_DAYS),
        clock=clock,
    )
    reset_tokens = ResetTokenService(
        store,
        lifetime=timedelta(minutes=settings.RESET_TOKEN_EXPIRE_MINUTES),
        clock=clock,
    )
    return AuthService(
        store=store,
        session_tokens=session_tokens,
        reset_tokens=reset_tokens,
        mailer=mailer,
        client_url=settings.CLIENT_URL,
        from_email=settings.FROM_EMAIL,
        expose_reset_url=not settings.is_production,
    )


def create_app(
    settings: Optional[Settings] = None,
    engine: Optional[Engine] = None,
    mailer: Optional[Mailer] = None,
    clock: Callable[[], datetime] = utcnow,
) -> FastAPI:
    """
    Build the application.

    Args:
        settings: Defaults to environment settings
        engine: Credential store engine (defaults to settings.DATABASE_URL)
        mailer: Mail transport (defaults to build_mailer(settings))
        clock: Time source for token issuance and expiry
    """
    settings = settings or default_settings
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Startup:
            - Create the credential store tables
            - Verify the mail transport (outside production)
        Shutdown:
            - Dispose the engine if this app created it
        """
        owns_engine = engine is None
        db_engine = engine or get_engine(settings.DATABASE_URL)
        init_db(db_engine)

        transport = mailer or build_mailer(settings)
        if not settings.is_production and hasattr(transport, "verify"):
            transport.verify()

        auth_service = build_auth_service(settings, db_engine, transport, clock)
        app.state.db_engine = db_engine
        app.state.auth_service = auth_service
        app.state.session_tokens = auth_service.session_tokens

        yield

        if owns_engine:
            db_engine.dispose()

    app = FastAPI(
        title="Travlr Auth",
        description="Account registration, login and password reset for Travlr",
        version=VERSION,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Authorization", "Content-Type"],
    )
    app.add_middleware(SecurityMiddleware)

    @app.exception_handler(AuthError)
    async def auth_error_handler(request: Request, exc: AuthError):
        return JSONResponse(
            status_code=exc.status_code,
            content={"detail": exc.detail, "error_code": exc.error_code},
            headers=exc.headers,
        )

    app.include_router(auth_router, prefix="/api")

    @app.get("/api/health")
    async def api_health():
        """Liveness probe used by smoke tests and uptime monitors."""
        return {"ok": True}

    @app.get("/health")
    async def health_check():
        return {
            "status": "healthy",
            "version": VERSION,
            "environment": settings.ENVIRONMENT,
        }

    return app


app = create_app()
