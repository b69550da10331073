"""Tests for the bearer token codec and password hashing."""
from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import jwt
import pytest
from jwt.utils import base64url_encode

from assethub.security.context import TokenClaims
from assethub.security.tokens import ALGORITHM, hash_password, issue_token, verify_password, verify_token

SECRET = "unit-test-secret-" + "k" * 32


def _claims(**overrides) -> TokenClaims:
    values = {"user_id": 7, "email": "jo@example.com", "role": "USER", "department": "Sales"}
    values.update(overrides)
    return TokenClaims(**values)


def test_issue_then_verify_returns_same_identity():
    claims = verify_token(issue_token(_claims(), SECRET), SECRET)

    assert claims is not None
    assert (claims.user_id, claims.email, claims.role, claims.department) == (7, "jo@example.com", "USER", "Sales")
    assert claims.expires_at - claims.issued_at == timedelta(hours=24)


def test_null_department_survives_round_trip():
    claims = verify_token(issue_token(_claims(department=None), SECRET), SECRET)
    assert claims is not None
    assert claims.department is None


def test_expired_token_is_rejected():
    token = issue_token(_claims(), SECRET, ttl_seconds=-5)
    assert verify_token(token, SECRET) is None


def test_wrong_secret_is_rejected():
    token = issue_token(_claims(), SECRET)
    assert verify_token(token, "another-secret-" + "z" * 32) is None


def test_tampered_payload_is_rejected():
    header, _payload, signature = issue_token(_claims(), SECRET).split(".")
    now = datetime.now(timezone.utc)
    forged = {
        "sub": "7",
        "email": "jo@example.com",
        "role": "ADMIN",
        "department": "Sales",
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(hours=1)).timestamp()),
    }
    forged_payload = base64url_encode(json.dumps(forged).encode()).decode()

    assert verify_token(f"{header}.{forged_payload}.{signature}", SECRET) is None


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_malformed_token_is_rejected(token):
    assert verify_token(token, SECRET) is None


def test_token_missing_required_claim_is_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "7", "email": "jo@example.com", "iat": now, "exp": now + timedelta(hours=1)},
        SECRET,
        algorithm=ALGORITHM,
    )
    assert verify_token(token, SECRET) is None


def test_non_numeric_subject_is_rejected():
    now = datetime.now(timezone.utc)
    token = jwt.encode(
        {"sub": "abc", "email": "jo@example.com", "role": "USER", "iat": now, "exp": now + timedelta(hours=1)},
        SECRET,
        algorithm=ALGORITHM,
    )
    assert verify_token(token, SECRET) is None


def test_unsigned_token_is_rejected():
    token = jwt.encode({"sub": "7", "email": "x", "role": "ADMIN"}, None, algorithm="none")
    assert verify_token(token, SECRET) is None


def test_password_hash_round_trip():
    hashed = hash_password("correct horse")
    assert hashed != "correct horse"
    assert verify_password("correct horse", hashed)
    assert not verify_password("wrong horse", hashed)


def test_verify_password_against_non_bcrypt_hash_is_false():
    assert verify_password("anything", "!") is False


@pytest.mark.parametrize("exp", [10**12, 2**62])
def test_signed_token_with_out_of_range_expiry_is_rejected(exp):
    token = jwt.encode(
        {"sub": "1", "email": "jo@example.com", "role": "USER", "iat": 0, "exp": exp},
        SECRET,
        algorithm=ALGORITHM,
    )
    assert verify_token(token, SECRET) is None
