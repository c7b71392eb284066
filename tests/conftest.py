# tests/conftest.py
import os
import sys
import pytest
from pathlib import Path
from sqlalchemy.sql import text

# Add project root (and this directory, for helpers) to Python path
project_root = str(Path(__file__).parent.parent)
if project_root not in sys.path:
    sys.path.insert(0, project_root)
tests_root = str(Path(__file__).parent)
if tests_root not in sys.path:
    sys.path.insert(0, tests_root)

from fastapi.testclient import TestClient

from magpie.auth.context import AuthenticatedUser
from magpie.auth.guard import OwnershipGuard
from magpie.config import Settings
from magpie.sa.database import Database
from magpie.sa.repositories.user import UserRepository
from magpie.offline.store import LocalStore
from api.dependencies import build_services
from api.main import create_app
from helpers import FakeTokenValidator, TEST_AUDIENCE, make_payload


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory):
    """Create a temporary directory for the test database."""
    test_dir = tmp_path_factory.mktemp("test_db")
    return str(test_dir / "test_catalog.db")


@pytest.fixture(scope="session")
def database(test_db_path):
    """Create a test database instance"""
    db = Database(f"sqlite:///{test_db_path}")

    # Drop all tables and recreate schema
    db.base.metadata.drop_all(db.engine)
    db.init_db()

    yield db

    db.dispose()
    try:
        os.remove(test_db_path)
    except OSError:
        pass


@pytest.fixture(autouse=True)
def cleanup_db(database):
    """Clean up database tables before each test"""
    with database.get_db() as session:
        session.execute(text("DELETE FROM book_share"))
        session.execute(text("DELETE FROM book"))
        session.execute(text('DELETE FROM "user"'))
    yield


@pytest.fixture(scope="function")
def db_session(database):
    """Create a new database session for a test"""
    session = database.get_session()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def users(db_session):
    """Three identities: alice and bob share books in tests, carol is a stranger."""
    repo = UserRepository(db_session)
    return {
        name: repo.create_user(user_id=name, email=f"{name}@example.com", name=name.title())
        for name in ("alice", "bob", "carol")
    }


@pytest.fixture
def alice(users):
    return AuthenticatedUser(id="alice", email="alice@example.com", name="Alice")


@pytest.fixture
def bob(users):
    return AuthenticatedUser(id="bob", email="bob@example.com", name="Bob")


@pytest.fixture
def carol(users):
    return AuthenticatedUser(id="carol", email="carol@example.com", name="Carol")


@pytest.fixture
def guard():
    return OwnershipGuard()


@pytest.fixture
def token_validator():
    return FakeTokenValidator({
        "alice-token": make_payload("alice"),
        "bob-token": make_payload("bob"),
        "carol-token": make_payload("carol"),
        "dave-token": make_payload("dave", name="Dave"),
    })


@pytest.fixture
def settings(test_db_path):
    return Settings(
        database_url=f"sqlite:///{test_db_path}",
        google_client_id=TEST_AUDIENCE,
        public_records=[],
        cors_origins=["http://localhost:5173"],
        log_level="WARNING",
    )


@pytest.fixture
def services(settings, database, token_validator):
    return build_services(settings, database=database, token_validator=token_validator)


@pytest.fixture
def app(services):
    return create_app(services=services)


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def store(tmp_path):
    local = LocalStore(str(tmp_path / "device" / "local.db"))
    yield local
    local.database.dispose()
