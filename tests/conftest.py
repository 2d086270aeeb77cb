"""
Pytest configuration and shared fixtures.
"""

import pytest
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from authcore.main import app
from authcore.db.database import create_db_engine, get_db
from authcore.db.models import Base, User
from authcore.db.users import UserModel
from authcore.services.email import get_email_service


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow")


# Create a shared test database engine
test_engine = create_db_engine("sqlite://", timeout=3, poolclass=StaticPool)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


def override_get_db():
    """Override database dependency for testing."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


# Override the dependency globally for all tests
app.dependency_overrides[get_db] = override_get_db


class RecordingEmailService:
    """Stands in for SendGrid and keeps every token it was asked to send."""

    def __init__(self):
        self.sent = []

    def send_activation_email(self, to_email, token, username=None):
        self.sent.append(("activation", to_email, token))
        return True

    def send_password_reset_email(self, to_email, token):
        self.sent.append(("password-reset", to_email, token))
        return True

    def last_token(self, kind):
        for sent_kind, _, token in reversed(self.sent):
            if sent_kind == kind:
                return token
        return None


@pytest.fixture(autouse=True)
def setup_database():
    """Create tables before each test and drop after."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db_session():
    """Create database session for test setup."""
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def outbox():
    """Capture outgoing token emails."""
    service = RecordingEmailService()
    app.dependency_overrides[get_email_service] = lambda: service
    yield service
    app.dependency_overrides.pop(get_email_service, None)


@pytest.fixture
def client(outbox):
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def make_user(db_session):
    """Factory inserting users with a known password."""

    def _make_user(
        username="alice",
        email="alice@example.com",
        password="correct horse",
        activated=True,
    ):
        user = User(username=username, email=email, activated=activated)
        user.set_password(password)
        UserModel(db_session).insert(user)
        user.clear_password_plaintext()
        return user

    return _make_user
