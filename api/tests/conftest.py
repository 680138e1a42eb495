"""Pytest configuration and fixtures."""

import os

os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite://")
os.environ.setdefault("NOTICE_BACKEND", "log")

from datetime import datetime  # noqa: E402

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from printbroker.api.deps import get_db, get_notice_sender  # noqa: E402
from printbroker.config import settings  # noqa: E402
from printbroker.database import build_engine  # noqa: E402
from printbroker.main import app  # noqa: E402
from printbroker.models import Base, Company, Vendor  # noqa: E402
from printbroker.services.notice_sender import BaseNoticeSender, NoticeReceipt, NoticeSendError  # noqa: E402

WEBHOOK_SECRET = "test-webhook-secret"


class RecordingNoticeSender(BaseNoticeSender):
    """Keeps every notice instead of sending it."""

    def __init__(self):
        self.sent = []

    def send(self, notice, recipient):
        self.sent.append((notice, recipient))
        return NoticeReceipt(sent_at=datetime.utcnow(), sent_to=recipient, reference=f"test-{len(self.sent)}")


class FailingNoticeSender(BaseNoticeSender):
    """Always fails, like an unreachable broker."""

    def __init__(self, message="broker unreachable"):
        self.message = message
        self.attempts = 0

    def send(self, notice, recipient):
        self.attempts += 1
        raise NoticeSendError(self.message)


@pytest.fixture
def test_engine(tmp_path):
    """File-backed SQLite so that threads can each hold their own connection."""
    engine = build_engine(f"sqlite:///{tmp_path / 'test.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False, bind=test_engine)


@pytest.fixture
def test_db(session_factory):
    """Create a test database session."""
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def customer(test_db):
    company = Company(name="Acme Mailers", type="CUSTOMER", email="ap@acme.example.com")
    test_db.add(company)
    test_db.commit()
    return company


@pytest.fixture
def vendor(test_db):
    record = Vendor(name="Northside Print", vendor_code="NSP")
    test_db.add(record)
    test_db.commit()
    return record


@pytest.fixture
def second_vendor(test_db):
    record = Vendor(name="Lakeview Bindery", vendor_code="LVB")
    test_db.add(record)
    test_db.commit()
    return record


@pytest.fixture
def recording_sender():
    return RecordingNoticeSender()


@pytest.fixture
def failing_sender():
    return FailingNoticeSender()


@pytest.fixture
def webhook_secret(monkeypatch):
    monkeypatch.setattr(settings, "portal_webhook_secret", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


@pytest.fixture
def client_with_db(session_factory, recording_sender):
    """Create a test client with database session and notice sender overrides."""

    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notice_sender] = lambda: recording_sender
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def client():
    """Create a test client."""
    return TestClient(app)


def partner_job_payload(customer_id, **overrides):
    """Creation body for a partner-routed job that can be priced."""
    payload = {
        "title": "Spring self-mailer",
        "customer_id": customer_id,
        "quantity": 10000,
        "sell_price": "900.00",
        "size_name": "7 1/4 x 16 3/8",
        "paper_source": "SELF_SUPPLIED",
        "routing_type": "PARTNER_INTERMEDIARY",
        "job_meta_type": "MAILING",
        "mail_format": "SELF_MAILER",
    }
    payload.update(overrides)
    return payload
