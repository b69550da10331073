"""
Tests for credential checks against the users table (ORM).

Uses db_session fixture: in-memory SQLite, rolled back after each test.
"""
from __future__ import annotations

import pytest
from fastapi import HTTPException

from assethub.models.security import Role, User
from assethub.security.auth import authenticate_user, claims_for
from assethub.security.tokens import hash_password


def _user(db_session, *, email="test@example.com", password="s3cret-pass", is_active=True, department="Sales"):
    user = User(
        email=email,
        first_name="Test",
        last_name="User",
        password_hash=hash_password(password),
        role=Role.USER.value,
        department=department,
        is_active=is_active,
    )
    db_session.add(user)
    db_session.commit()
    return user


def test_authenticate_user_returns_user(db_session):
    # Arrange
    user = _user(db_session)

    # Act
    loaded = authenticate_user(db_session, "test@example.com", "s3cret-pass")

    # Assert
    assert loaded.id == user.id
    assert loaded.department == "Sales"


def test_authenticate_user_normalizes_email(db_session):
    user = _user(db_session)
    assert authenticate_user(db_session, "  Test@Example.COM ", "s3cret-pass").id == user.id


@pytest.mark.parametrize(
    "email,password",
    [("test@example.com", "wrong-pass"), ("nobody@example.com", "s3cret-pass")],
)
def test_authenticate_user_rejects_bad_credentials(db_session, email, password):
    _user(db_session)

    with pytest.raises(HTTPException) as exc_info:
        authenticate_user(db_session, email, password)
    assert exc_info.value.status_code == 401
    assert exc_info.value.detail == "Invalid credentials"


def test_authenticate_user_rejects_inactive(db_session):
    _user(db_session, is_active=False)

    with pytest.raises(HTTPException) as exc_info:
        authenticate_user(db_session, "test@example.com", "s3cret-pass")
    assert exc_info.value.status_code == 401


def test_claims_for_copies_identity(db_session):
    user = _user(db_session, department=None)

    claims = claims_for(user)
    assert claims.user_id == user.id
    assert claims.email == "test@example.com"
    assert claims.role == "USER"
    assert claims.department is None
    assert claims.is_admin is False
