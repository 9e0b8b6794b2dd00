import sys
from datetime import timedelta
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from sqlmodel import Session, SQLModel, create_engine, text


def _ensure_app_on_path():
    repo_root = Path(__file__).resolve().parent.parent
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))
    return repo_root


_ensure_app_on_path()

# ============================================================================
# IN-MEMORY DATABASE FOR TESTING
# ============================================================================

from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from results_portal.auth_utils import hash_password
from results_portal.config import Settings, get_settings
from results_portal.database import get_session
from results_portal.main import app
from results_portal.models import AccessGrant, Admin, ResultRecord, utcnow

# StaticPool shares the single in-memory database across threads
test_engine = create_engine(
    "sqlite:///:memory:",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)


@pytest.fixture(scope="session")
def engine():
    """Provide test engine as a fixture."""
    return test_engine


@pytest.fixture(scope="session", autouse=True)
def setup_test_db():
    """Create all tables in the test database once per session."""
    SQLModel.metadata.create_all(test_engine)
    yield
    SQLModel.metadata.drop_all(test_engine)


@pytest.fixture(autouse=True)
def cleanup_db_between_tests():
    """Clean up test data after each test."""
    yield
    with Session(test_engine) as session:
        session.exec(text("DELETE FROM accessgrant"))
        session.exec(text("DELETE FROM accesslog"))
        session.exec(text("DELETE FROM resultrecord"))
        session.exec(text("DELETE FROM admin"))
        session.commit()


@pytest.fixture
def session():
    """Provide a database session for tests."""
    with Session(test_engine) as session:
        yield session


# ============================================================================
# FASTAPI APP & TEST CLIENT
# ============================================================================


@pytest.fixture
def upload_dir(tmp_path):
    directory = tmp_path / "uploads"
    directory.mkdir()
    return directory


@pytest.fixture
def settings(upload_dir):
    return Settings(
        database_url="sqlite://",
        upload_dir=str(upload_dir),
        grant_ttl_seconds=300,
    )


@pytest.fixture
def client(settings):
    """Test client wired to the in-memory database and a temporary upload dir."""

    def override_get_session():
        with Session(test_engine) as session:
            yield session

    app.dependency_overrides[get_session] = override_get_session
    app.dependency_overrides[get_settings] = lambda: settings

    yield TestClient(app)

    app.dependency_overrides.clear()


# ============================================================================
# ENTITY FIXTURES
# ============================================================================


@pytest.fixture
def admin_user():
    """Create an admin account with password 'admin123'."""
    with Session(test_engine) as session:
        admin = Admin(username="admin", password_hash=hash_password("admin123"))
        session.add(admin)
        session.commit()
        session.refresh(admin)
        admin_id = admin.id

    with Session(test_engine) as session:
        return session.get(Admin, admin_id)


@pytest.fixture
def admin_client(client, admin_user):
    """Test client already logged in as the admin."""
    response = client.post("/api/admin/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 200
    return client


def _insert_record(upload_dir=None, content=b"%PDF-1.4 result", **overrides):
    values = {
        "student_name": "Ama Mensah",
        "exam_number": "EX1001",
        "pin": "4477",
        "file_path": "1700000000000-123.pdf",
        "original_filename": "ama_result.pdf",
    }
    values.update(overrides)
    if upload_dir is not None:
        (Path(upload_dir) / values["file_path"]).write_bytes(content)

    with Session(test_engine) as session:
        record = ResultRecord(**values)
        session.add(record)
        session.commit()
        session.refresh(record)
        record_id = record.id

    with Session(test_engine) as session:
        return session.get(ResultRecord, record_id)


@pytest.fixture
def record_factory(upload_dir):
    """Insert ResultRecords; the file is written unless with_file=False."""

    def _make(with_file=True, **overrides):
        return _insert_record(upload_dir if with_file else None, **overrides)

    return _make


@pytest.fixture
def result_record(record_factory):
    """A stored result for EX1001 / 4477 with its file on disk."""
    return record_factory()


@pytest.fixture
def expired_grant(result_record):
    """A grant for ``result_record`` that expired a minute ago."""
    now = utcnow()
    with Session(test_engine) as session:
        grant = AccessGrant(
            token="e" * 64,
            result_id=result_record.id,
            issued_at=now - timedelta(minutes=6),
            expires_at=now - timedelta(minutes=1),
        )
        session.add(grant)
        session.commit()
    return "e" * 64


@pytest.fixture
def database_down(client):
    """Point the app at a session whose every query fails."""
    broken = MagicMock()
    error = OperationalError("SELECT 1", {}, Exception("connection pool exhausted"))
    broken.exec.side_effect = error
    broken.get.side_effect = error
    broken.commit.side_effect = error

    def override_get_session():
        yield broken

    app.dependency_overrides[get_session] = override_get_session
    return broken
