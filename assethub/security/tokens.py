"""
Bearer token codec and password hashing.

Tokens are HS256 JWTs signed with the app secret. They carry the user id
(``sub``), email, role and department verbatim, plus ``iat``/``exp``. There is
no refresh or revocation: expiry is the only way a token stops working.

``verify_token`` fails closed. Any signature mismatch, malformed token,
missing claim or expiry returns None, and the caller treats that as
unauthenticated. Tokens are never logged.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

import bcrypt
import jwt

from assethub.security.context import TokenClaims

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
DEFAULT_TTL_SECONDS = 24 * 60 * 60

_REQUIRED_CLAIMS = ("sub", "email", "role", "iat", "exp")


def issue_token(claims: TokenClaims, secret: str, ttl_seconds: int = DEFAULT_TTL_SECONDS) -> str:
    """Encode a signed, time-bounded token for ``claims``."""
    now = datetime.now(timezone.utc)
    payload = {
        "sub": str(claims.user_id),
        "email": claims.email,
        "role": claims.role,
        "department": claims.department,
        "iat": now,
        "exp": now + timedelta(seconds=ttl_seconds),
    }
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def _claims_from_payload(payload: dict[str, Any]) -> TokenClaims | None:
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        return None

    try:
        issued_at = datetime.fromtimestamp(payload["iat"], tz=timezone.utc)
        expires_at = datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
    except (OverflowError, ValueError, OSError):
        # Signed, but outside the range a datetime can hold.
        return None

    department = payload.get("department")
    return TokenClaims(
        user_id=user_id,
        email=str(payload["email"]),
        role=str(payload["role"]),
        department=str(department) if department is not None else None,
        issued_at=issued_at,
        expires_at=expires_at,
    )


def verify_token(token: str, secret: str) -> TokenClaims | None:
    """Decode and verify a token. Returns the claims, or None on any failure."""
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[ALGORITHM],
            options={"require": list(_REQUIRED_CLAIMS), "verify_exp": True},
        )
    except jwt.ExpiredSignatureError:
        logger.info("Token expired")
        return None
    except jwt.InvalidTokenError as e:
        logger.info("Token invalid: %s", type(e).__name__)
        return None

    claims = _claims_from_payload(payload)
    if claims is None:
        logger.info("Token invalid: malformed subject or timestamps")
    return claims


# ---- Passwords -----------------------------------------------------------------------


def hash_password(plain: str) -> str:
    """Return a bcrypt hash of ``plain``."""
    return bcrypt.hashpw(plain.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain: str, hashed: str) -> bool:
    try:
        return bcrypt.checkpw(plain.encode("utf-8"), hashed.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash.
        return False
