import os

# must be set before anything imports requestline.core.config
os.environ["DATABASE_URI"] = "sqlite://"
os.environ["JWT_SECRET"] = "test-secret"
os.environ["OPERATOR_IDS"] = ""

from datetime import datetime, timedelta

import pytest
from fastapi.testclient import TestClient

import requestline.db.models  # noqa: F401  registers tables on Base.metadata
from requestline.core.config import settings
from requestline.db.models.song_request import RequestStatus, SongRequest
from requestline.db.session import Base, SessionLocal, engine
from requestline.main import app
from requestline.schemas.auth import OperatorIdentity
from requestline.services.auth import create_session_token


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def operator():
    return OperatorIdentity(operator_id="google-123", display_name="Ada")


@pytest.fixture
def operator_client(operator):
    test_client = TestClient(app)
    test_client.cookies.set(settings.SESSION_COOKIE_NAME, create_session_token(operator))
    return test_client


@pytest.fixture
def make_request(db):
    """Insert a request directly, with a controllable submission time and status."""
    base_time = datetime(2024, 5, 1, 20, 0, 0)

    def _make(title="Song", performer="Band", status=RequestStatus.NEW, minutes=0, requester=None, message=None):
        song_request = SongRequest(
            title=title,
            performer=performer,
            requester=requester,
            message=message,
            submitted_at=base_time + timedelta(minutes=minutes),
            status=status,
        )
        db.add(song_request)
        db.commit()
        db.refresh(song_request)
        return song_request

    return _make


@pytest.fixture
def read_statuses(db):
    """Current status of every request, read fresh from the database."""

    def _read():
        db.expire_all()
        return {row.id: row.status for row in db.query(SongRequest).all()}

    return _read
