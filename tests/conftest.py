"""
Shared test fixtures for the dive log backend.

Env vars are set BEFORE any app import so pydantic-settings picks them up.
Database: SQLite in-memory via StaticPool; all connections share the same
connection, so request handlers and the test session see the same data.
Object storage is off by default (empty MINIO_ENDPOINT); tests that share
reports patch the storage calls.
"""
import os
from datetime import datetime, timedelta, timezone

# ── env vars must be set before ANY app import ────────────────────────────────
os.environ.update(
    {
        "DATABASE_URL": "sqlite://",
        "JWT_SECRET": "test-secret-for-unit-tests-only",
        "MINIO_ENDPOINT": "",
        "MINIO_BUCKET": "dive-reports",
        "SMTP_HOST": "",
        "LOG_LEVEL": "WARNING",
    }
)

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from starlette.testclient import TestClient

# App imports after env vars are set
from divelog.auth.hashing import hash_password
from divelog.auth.jwt import create_access_token
from divelog.database import Base, get_db
from divelog.main import app  # triggers all model imports → registers with Base.metadata
from divelog.models.diver import Diver
from divelog.models.job import Job, JobStatus
from divelog.models.user import User
from divelog.utils.profiles import ensure_profile

# ── test engine: single in-memory SQLite connection shared via StaticPool ─────
TEST_ENGINE = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=TEST_ENGINE)


# ── autouse: create / drop tables per test ────────────────────────────────────
@pytest.fixture(autouse=True)
def reset_db():
    Base.metadata.create_all(TEST_ENGINE)
    yield
    Base.metadata.drop_all(TEST_ENGINE)


# ── autouse: test DB session + get_db override ────────────────────────────────
@pytest.fixture(autouse=True)
def db_session(reset_db):
    """One SQLAlchemy session per test, also served to every request."""
    session = TestingSessionLocal()

    def _override():
        try:
            yield session
        finally:
            pass

    app.dependency_overrides[get_db] = _override
    yield session
    app.dependency_overrides.pop(get_db, None)
    session.close()


# ── test client ───────────────────────────────────────────────────────────────
@pytest.fixture
def client():
    return TestClient(app)


# ── user fixtures ─────────────────────────────────────────────────────────────
def _make_user(db_session, email, password, role, with_profile=True):
    user = User(email=email, password_hash=hash_password(password), role=role)
    db_session.add(user)
    db_session.flush()
    if with_profile:
        ensure_profile(db_session, user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def admin_user(db_session):
    return _make_user(db_session, "admin@example.com", "adminpass", "admin")


@pytest.fixture
def supervisor_user(db_session):
    return _make_user(db_session, "supervisor@example.com", "supervisorpass", "supervisor")


@pytest.fixture
def other_supervisor(db_session):
    return _make_user(db_session, "other@example.com", "otherpass", "supervisor")


@pytest.fixture
def viewer_user(db_session):
    return _make_user(db_session, "viewer@example.com", "viewerpass", "viewer", with_profile=False)


# ── token / header fixtures ───────────────────────────────────────────────────
@pytest.fixture
def admin_token(admin_user):
    return create_access_token(admin_user.email)


@pytest.fixture
def supervisor_token(supervisor_user):
    return create_access_token(supervisor_user.email)


@pytest.fixture
def viewer_token(viewer_user):
    return create_access_token(viewer_user.email)


@pytest.fixture
def admin_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


@pytest.fixture
def supervisor_headers(supervisor_token):
    return {"Authorization": f"Bearer {supervisor_token}"}


@pytest.fixture
def other_headers(other_supervisor):
    return {"Authorization": f"Bearer {create_access_token(other_supervisor.email)}"}


@pytest.fixture
def viewer_headers(viewer_token):
    return {"Authorization": f"Bearer {viewer_token}"}


# ── master data ───────────────────────────────────────────────────────────────
@pytest.fixture
def job(db_session):
    row = Job(job_name="Platform Alpha Riser Survey", client_name="North Sea Energy",
              location="Block 15/22", status=JobStatus.active)
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def diver(db_session):
    row = Diver(full_name="Jane Harper", rank="Diver 1", certification_no="HSE-1234")
    db_session.add(row)
    db_session.commit()
    db_session.refresh(row)
    return row


@pytest.fixture
def started_dive(client, supervisor_headers, job, diver):
    """An in-progress dive started at a fixed instant by the supervisor."""
    resp = client.post(
        "/dives",
        json={
            "job_id": str(job.id),
            "diver_id": str(diver.id),
            "started_at": "2024-03-10T08:00:00Z",
        },
        headers=supervisor_headers,
    )
    assert resp.status_code == 201, resp.text
    return resp.json()


# ── clock helpers ─────────────────────────────────────────────────────────────
class FakeNow:
    """Settable replacement for utc_now."""

    def __init__(self, start=None):
        self.value = start or datetime(2024, 3, 10, 8, 0, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.value

    def advance(self, seconds):
        self.value = self.value + timedelta(seconds=seconds)
        return self.value


@pytest.fixture
def fake_now():
    return FakeNow()
