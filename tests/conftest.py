"""Pytest fixtures."""

import os

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["LIVENESS_SWEEP_ENABLED"] = "false"
os.environ["EMAIL_BACKEND"] = "log"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from alertivo.core.deps import get_admin_sync, get_email_sender, get_push_notifier  # noqa: E402
from alertivo.core.errors import InternalError  # noqa: E402
from alertivo.db.base import Base  # noqa: E402
from alertivo.db.session import get_db  # noqa: E402
from alertivo.main import app  # noqa: E402
from alertivo import models  # noqa: E402,F401 - register for create_all

TEST_DATABASE_URL = "sqlite:///./test.db"

engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def override_get_db():
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


class FakeEmailSender:
    """Captures OTP codes instead of mailing them."""

    def __init__(self):
        self.sent = []
        self.fail = False

    def send_otp(self, email, code):
        if self.fail:
            raise InternalError("Failed to send OTP.")
        self.sent.append((email, code))

    def last_code(self, email):
        return [code for to, code in self.sent if to == email][-1]


class FakePushNotifier:
    def __init__(self):
        self.sent = []

    def notify_assignment(self, push_token, alert):
        self.sent.append((push_token, alert))
        return True


class FakeAdminSync:
    def __init__(self):
        self.synced = []

    def sync_medical_report(self, payload):
        self.synced.append(payload)
        return True


@pytest.fixture
def setup_db():
    """Fresh tables for every test."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(setup_db):
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def email_sender():
    return FakeEmailSender()


@pytest.fixture
def push_notifier():
    return FakePushNotifier()


@pytest.fixture
def admin_sync():
    return FakeAdminSync()


@pytest.fixture
def client(setup_db, email_sender, push_notifier, admin_sync):
    """Test client with overridden DB and outbound channels."""
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_email_sender] = lambda: email_sender
    app.dependency_overrides[get_push_notifier] = lambda: push_notifier
    app.dependency_overrides[get_admin_sync] = lambda: admin_sync
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()
