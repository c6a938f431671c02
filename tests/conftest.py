"""Pytest configuration and shared fixtures."""

import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Generator

# Configuration is read once on first import of linkpage, so the test
# environment has to be in place before anything below imports it.
_temp_db = tempfile.NamedTemporaryFile(suffix=".db", delete=False)
_temp_db.close()
_TEST_ENV = {
    "LINKPAGE_DATABASE_URL": f"sqlite:///{_temp_db.name}",
    "LINKPAGE_REPOSITORY": "sqlalchemy",
    "LINKPAGE_JWT_SECRET_KEY": "t3st-Signing-Key_0123456789-abcdefghijklmnopqrstuvwxyz",
    "LINKPAGE_PASSWORD_HASH_ITERATIONS": "1000",
    "LINKPAGE_TOKEN_EXPIRES_DAYS": "7",
    "LINKPAGE_ANALYTICS_TIMEZONE": "UTC",
    "LINKPAGE_LOG_TO_FILE": "0",
}
for _key, _value in _TEST_ENV.items():
    os.environ[_key] = _value
os.environ.pop("LINKPAGE_CONFIG_FILE", None)

import pytest
from alembic import command
from alembic.config import Config
from fastapi.testclient import TestClient
from sqlalchemy import text
from sqlalchemy.orm import sessionmaker

from linkpage.auth.jwt_auth import JWTTokenManager
from linkpage.db.database import create_database_engine
from linkpage.repositories.memory_impl import create_memory_container
from linkpage.repositories.sqlalchemy_impl import create_sqlalchemy_container
from tests.helpers.api import register_user

TEST_SECRET = _TEST_ENV["LINKPAGE_JWT_SECRET_KEY"]


def _project_root() -> Path:
    """Return the repository root path."""
    return Path(__file__).resolve().parents[1]


def _run_alembic_migrations(db_url: str):
    """Run Alembic migrations programmatically for test database."""
    alembic_cfg = Config()
    alembic_cfg.set_main_option('script_location', str(_project_root() / 'alembic'))
    alembic_cfg.set_main_option('sqlalchemy.url', db_url)

    command.upgrade(alembic_cfg, 'head')


@pytest.fixture(scope="session")
def setup_test_env():
    """Migrate the temporary SQLite database once per session."""
    db_url = _TEST_ENV["LINKPAGE_DATABASE_URL"]
    try:
        _run_alembic_migrations(db_url)
        yield db_url
    finally:
        Path(_temp_db.name).unlink(missing_ok=True)
        for suffix in ("-wal", "-shm"):
            Path(_temp_db.name + suffix).unlink(missing_ok=True)


@pytest.fixture
def test_db(setup_test_env):
    """Create a test database session factory with migrations applied.

    Tables are emptied after each test so tests stay independent.
    """
    engine = create_database_engine(setup_test_env)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    yield TestingSessionLocal

    with engine.begin() as conn:
        conn.execute(text("DELETE FROM analytics"))
        conn.execute(text("DELETE FROM links"))
        conn.execute(text("DELETE FROM users"))
    engine.dispose()


@pytest.fixture
def db_session(test_db):
    """Create a database session for direct repository access."""
    session = test_db()

    yield session

    session.close()


@pytest.fixture
def token_manager() -> JWTTokenManager:
    """Token manager signing with the test secret."""
    return JWTTokenManager(secret_key=TEST_SECRET, algorithm="HS256", expires_days=7)


@pytest.fixture
def memory_repositories():
    """A fresh in-memory repository container."""
    return create_memory_container()


@pytest.fixture(params=["memory", "sqlalchemy"])
def repositories(request):
    """Repository container for each backend; contract tests run against both."""
    if request.param == "memory":
        yield create_memory_container()
        return

    session = request.getfixturevalue("db_session")
    yield create_sqlalchemy_container(session)


@pytest.fixture
def client(test_db) -> Generator[TestClient, None, None]:
    """Create a test client with database dependency override."""
    from linkpage.main import app
    from linkpage.db.database import get_db

    def override_get_db():
        # Use a fresh session per request in tests
        db = test_db()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    # Clear overrides to avoid affecting other tests
    app.dependency_overrides.clear()


@pytest.fixture
def memory_client() -> Generator[TestClient, None, None]:
    """Create a test client backed by a fresh in-memory store."""
    from linkpage.main import app
    from linkpage.repositories.dependencies import get_repository_container

    container = create_memory_container()
    app.dependency_overrides[get_repository_container] = lambda: container

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture(params=["memory", "sqlalchemy"])
def any_client(request) -> TestClient:
    """API client for each storage backend."""
    fixture_name = "memory_client" if request.param == "memory" else "client"
    return request.getfixturevalue(fixture_name)


@pytest.fixture
def registered_user(any_client) -> Dict[str, Any]:
    """A freshly registered account on the parametrized client."""
    return register_user(any_client)
