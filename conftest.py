"""Root conftest.py for pytest configuration.

This file configures pytest for the entire project, ensuring:
- Proper Python path setup for imports
- An in-memory SQLite database for every test
- Logfire observability configuration
- Shared fixtures across all tests
"""

import os
import sys
from pathlib import Path

# Settings are read at import time, so the test database and a cheap
# password hash must be in the environment before any project import.
os.environ.setdefault("DB_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("PASSWORD_ITERATIONS", "1000")

import logfire
import pytest
from fastapi.testclient import TestClient


# ============================================================================
# Python Path Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom settings and ensure project root is in sys.path."""

    # Add project root to sys.path so top-level packages are importable
    project_root = Path(__file__).parent.resolve()
    if str(project_root) not in sys.path:
        sys.path.insert(0, str(project_root))

    # Register custom markers
    config.addinivalue_line(
        "markers",
        "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers",
        "integration: marks tests that exercise the API or the database"
    )
    config.addinivalue_line(
        "markers",
        "unit: marks tests as unit tests (fast, no external dependencies)"
    )

    # Configure logfire for all tests; nothing leaves the machine
    logfire.configure(
        service_name="adminkit_tests",
        environment="test",
        send_to_logfire=False,
        console=False,
    )

    logfire.info(
        "Starting test suite",
        project_root=str(project_root),
        python_path=sys.path[:3],  # Log first 3 paths for debugging
    )


def pytest_sessionfinish(session, exitstatus):
    """Log test session completion with summary statistics."""
    logfire.info(
        "Test suite completed",
        exit_status=exitstatus,
        tests_collected=session.testscollected,
        tests_failed=session.testsfailed,
    )


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture
def db():
    """A session on a freshly created schema, with permissions and system roles seeded."""
    from database import Base, SessionLocal, engine, create_all_tables
    from services.roles import ensure_system_roles

    create_all_tables(engine)
    session = SessionLocal()
    ensure_system_roles(session)
    session.commit()
    try:
        yield session
    finally:
        session.rollback()
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def make_user(db):
    """
    Factory creating committed, active users.

    Usage:
        editor = make_user("editor", permissions=["view users"])
    """
    from services.users import create_user

    def _make_user(username: str, permissions=None, roles=None, teams=None, is_active=True, **extra):
        user = create_user(
            db,
            name=extra.pop("name", username.replace("-", " ").title()),
            username=username,
            email=extra.pop("email", f"{username}@example.com"),
            password=extra.pop("password", "secret-password"),
            is_active=is_active,
            roles=roles,
            teams=teams,
            permissions=permissions,
        )
        db.commit()
        return user

    return _make_user


@pytest.fixture
def super_admin(make_user):
    from config import settings

    return make_user("root", roles=[settings.super_admin_role], name="Root Admin")


@pytest.fixture
def token_for(db):
    """Issue a bearer token for a user and return the Authorization header."""
    from services.security import issue_token

    def _token_for(user) -> dict:
        token, token_hash = issue_token()
        user.api_token_hash = token_hash
        db.commit()
        return {"Authorization": f"Bearer {token}"}

    return _token_for


@pytest.fixture
def admin_headers(super_admin, token_for):
    return token_for(super_admin)


# ============================================================================
# API Fixtures
# ============================================================================

@pytest.fixture
def client(db):
    """TestClient whose requests share the test session."""
    from database import get_db
    from main import app

    def override_get_db():
        yield db

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def mock_env_vars(monkeypatch):
    """Fixture to mock environment variables for testing.

    Usage:
        def test_something(mock_env_vars):
            mock_env_vars({"API_KEY": "test-key", "DEBUG": "true"})
    """
    def _set_env_vars(env_dict: dict):
        for key, value in env_dict.items():
            monkeypatch.setenv(key, value)

    return _set_env_vars
