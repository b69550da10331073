"""
Pytest fixtures for the test suite.

Data-layer tests use an in-memory SQLite engine and a session that rolls back
after each test. API tests use a StaticPool in-memory engine so the TestClient
worker threads all see the same database, with `get_db` overridden to use it.

The JWT secret and DB URL env vars are set before any assethub import so the
cached settings pick them up.
"""
from __future__ import annotations

import os
from pathlib import Path

os.environ.setdefault("ASSETHUB_JWT_SECRET", "test-secret-" + "x" * 32)
os.environ.setdefault("ASSETHUB_DB_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool


TEST_DB_URL = "sqlite:///:memory:"
REPO_ROOT = Path(__file__).resolve().parents[1]
SECURITY_CONFIG_PATH = REPO_ROOT / "config" / "security_config.yaml"
TEST_SECRET = os.environ["ASSETHUB_JWT_SECRET"]


def _create_tables(engine) -> None:
    from assethub.db.base import Base
    from assethub.models import assets, audit, security  # noqa: F401  (register tables)

    Base.metadata.create_all(bind=engine)


@pytest.fixture
def engine():
    """Create a fresh in-memory SQLite engine for each test."""
    return create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        echo=False,
    )


@pytest.fixture
def tables(engine):
    """Create all ORM tables on the test engine."""
    _create_tables(engine)
    return engine


@pytest.fixture
def db_session(tables):
    """
    Provide a Session bound to the test DB; roll back after each test.

    The outer transaction is rolled back so the next test gets a clean state.
    """
    connection = tables.connect()
    transaction = connection.begin()
    TestSession = sessionmaker(
        bind=connection,
        autocommit=False,
        autoflush=False,
        class_=Session,
    )
    session = TestSession()
    yield session
    session.close()
    transaction.rollback()
    connection.close()


# ---- API fixtures --------------------------------------------------------------------


@pytest.fixture
def api_engine():
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    _create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def api_session_factory(api_engine):
    return sessionmaker(bind=api_engine, autocommit=False, autoflush=False, class_=Session)


@pytest.fixture
def api_db(api_session_factory):
    """Session for arranging and inspecting API test data."""
    session = api_session_factory()
    yield session
    session.close()


@pytest.fixture
def app(api_session_factory):
    from assethub.db.session import get_db
    from assethub.main import create_app
    from assethub.security.config import load_security_config

    application = create_app()
    application.state.security_config = load_security_config(SECURITY_CONFIG_PATH)

    def _get_db():
        db = api_session_factory()
        try:
            yield db
        finally:
            db.close()

    application.dependency_overrides[get_db] = _get_db
    return application


@pytest.fixture
def client(app):
    # Not used as a context manager: the real lifespan (file DB + seeding) is skipped.
    return TestClient(app)


@pytest.fixture
def make_user(api_db):
    """Create a user row. Only hashes a password when one is given."""
    from assethub.models.security import User
    from assethub.security.tokens import hash_password

    counter = {"n": 0}

    def _make(
        role: str = "USER",
        department: str | None = None,
        *,
        email: str | None = None,
        password: str | None = None,
        is_active: bool = True,
    ) -> User:
        counter["n"] += 1
        user = User(
            email=email or f"user{counter['n']}@example.com",
            first_name=f"First{counter['n']}",
            last_name="Tester",
            password_hash=hash_password(password) if password else "!",
            role=role,
            department=department,
            is_active=is_active,
        )
        api_db.add(user)
        api_db.commit()
        return user

    return _make


@pytest.fixture
def auth_headers():
    """Bearer headers for a user (claims taken from the user row)."""
    from assethub.security.auth import claims_for
    from assethub.security.tokens import issue_token

    def _headers(user) -> dict[str, str]:
        return {"Authorization": f"Bearer {issue_token(claims_for(user), TEST_SECRET)}"}

    return _headers


@pytest.fixture
def grant(api_db):
    """Store a permission grant for (department, module)."""
    from assethub.models.security import PermissionGrant

    def _grant(department: str, module: str = "DIGITAL_ASSETS", *, read=True, write=False, delete=False):
        row = PermissionGrant(
            department=department,
            module=module,
            can_read=read,
            can_write=write,
            can_delete=delete,
        )
        api_db.add(row)
        api_db.commit()
        return row

    return _grant
