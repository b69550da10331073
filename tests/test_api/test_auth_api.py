"""Tests for login, token introspection, health and user admin."""
from __future__ import annotations

import pytest

from assethub.models.security import User


def test_health_is_public(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_login_returns_working_token(client, make_user):
    user = make_user(department="Sales", email="jo@example.com", password="pa55word!")

    resp = client.post("/auth/login", json={"email": "Jo@Example.com", "password": "pa55word!"})

    assert resp.status_code == 200
    body = resp.json()
    assert body["user"]["id"] == user.id
    assert body["user"]["department"] == "Sales"
    assert "passwordHash" not in body["user"]

    me = client.get("/me", headers={"Authorization": f"Bearer {body['token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "jo@example.com"
    assert me.json()["role"] == "USER"
    assert me.json()["department"] == "Sales"


@pytest.mark.parametrize(
    "email,password",
    [("jo@example.com", "wrong-password"), ("ghost@example.com", "pa55word!")],
)
def test_login_bad_credentials_is_401(client, make_user, email, password):
    make_user(email="jo@example.com", password="pa55word!")

    resp = client.post("/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 401
    assert resp.json() == {"error": "Invalid credentials"}


def test_login_inactive_user_is_401(client, make_user):
    make_user(email="gone@example.com", password="pa55word!", is_active=False)
    assert client.post("/auth/login", json={"email": "gone@example.com", "password": "pa55word!"}).status_code == 401


def test_login_malformed_body_is_400(client):
    resp = client.post("/auth/login", json={"email": "jo@example.com"})
    assert resp.status_code == 400


def test_me_requires_token(client):
    assert client.get("/me").status_code == 401


def test_token_claims_are_trusted_until_expiry(client, api_db, make_user, auth_headers):
    user = make_user(department="Sales")
    headers = auth_headers(user)

    user.department = "Marketing"
    api_db.commit()

    # Department comes from the token, not from the users table.
    assert client.get("/me", headers=headers).json()["department"] == "Sales"


def test_admin_user_endpoints_require_admin(client, make_user, auth_headers):
    headers = auth_headers(make_user(department="Sales"))
    assert client.get("/admin/users", headers=headers).status_code == 403
    assert client.get("/admin/users").status_code == 401


def test_admin_creates_user_who_can_log_in(client, api_db, make_user, auth_headers):
    admin_headers = auth_headers(make_user(role="ADMIN"))

    resp = client.post(
        "/admin/users",
        json={"email": "New@Example.com", "password": "longenough", "firstName": "New", "department": "Sales"},
        headers=admin_headers,
    )
    assert resp.status_code == 201
    assert resp.json()["email"] == "new@example.com"
    assert resp.json()["role"] == "USER"

    duplicate = client.post(
        "/admin/users",
        json={"email": "new@example.com", "password": "longenough"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400

    login = client.post("/auth/login", json={"email": "new@example.com", "password": "longenough"})
    assert login.status_code == 200

    listed = client.get("/admin/users", headers=admin_headers).json()
    assert "new@example.com" in [u["email"] for u in listed]
    assert len(listed) == api_db.query(User).count()
