"""
Travlr Auth - Test Configuration

Pytest fixtures for authentication testing.
Provides an in-memory credential store, a controllable clock, a recording
mail transport and a TestClient over an app wired with all three.
"""

import pytest
from datetime import datetime, timedelta
from typing import Generator, List

from fastapi.testclient import TestClient
from sqlmodel import SQLModel, create_engine
from sqlalchemy.pool import StaticPool

from travlr.app import build_auth_service, create_app
from travlr.auth.database import get_session_factory, init_db
from travlr.auth.models import Account, Role
from travlr.auth.password import set_password
from travlr.auth.store import CredentialStore
from travlr.config import Settings
from travlr.mail import MailDeliveryError, MailMessage


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"

TEST_SECRET_KEY = "test-secret-key-with-enough-entropy-0123456789"


class FakeClock:
    """Settable time source; starts at a fixed instant."""

    def __init__(self, start: datetime = datetime(2024, 1, 1, 12, 0, 0)):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class RecordingMailer:
    """Mail transport that keeps messages in memory, or fails on demand."""

    def __init__(self):
        self.sent: List[MailMessage] = []
        self.fail = False

    def send(self, message: MailMessage) -> None:
        if self.fail:
            raise MailDeliveryError("transport down")
        self.sent.append(message)

    @property
    def last_token(self) -> str:
        """Plaintext token from the most recent reset link."""
        html = self.sent[-1].html
        return html.split("token=", 1)[1].split('"', 1)[0]


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        SECRET_KEY=TEST_SECRET_KEY,
        ENVIRONMENT="development",
        DATABASE_URL=TEST_DATABASE_URL,
        CLIENT_URL="http://client.test",
        FROM_EMAIL="no-reply@travlr.test",
        SMTP_HOST="",
    )


@pytest.fixture
def test_engine():
    """Create a fresh test database engine for each test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(engine)

    yield engine

    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def store(test_engine, clock) -> CredentialStore:
    return CredentialStore(get_session_factory(test_engine), clock=clock)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def auth_service(test_settings, test_engine, mailer, clock):
    return build_auth_service(test_settings, test_engine, mailer, clock)


@pytest.fixture
def app(test_settings, test_engine, mailer, clock):
    return create_app(test_settings, engine=test_engine, mailer=mailer, clock=clock)


@pytest.fixture
def client(app) -> Generator[TestClient, None, None]:
    """Create a test client over the wired app."""
    with TestClient(app) as c:
        yield c


def make_account(
    store: CredentialStore,
    email: str = "ana@x.com",
    password: str = "pw123",
    name: str = "Ana",
    role: Role = Role.USER,
) -> Account:
    """Insert an account directly through the store."""
    account = Account(name=name, email=email, role=role)
    set_password(account, password)
    return store.create(account)


@pytest.fixture
def test_user(store) -> Account:
    return make_account(store)


@pytest.fixture
def test_admin(store) -> Account:
    return make_account(store, email="admin@x.com", password="adminpw", name="Root", role=Role.ADMIN)


def auth_headers(access_token: str) -> dict:
    """Create authorization headers for authenticated requests."""
    return {"Authorization": f"Bearer {access_token}"}
