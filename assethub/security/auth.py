from __future__ import annotations

import logging

from fastapi import HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from assethub.models.security import User
from assethub.security.config import SecurityConfig
from assethub.security.context import TokenClaims
from assethub.security.tokens import hash_password, verify_password, verify_token

logger = logging.getLogger(__name__)

UNAUTHORIZED = "Unauthorized"
INVALID_TOKEN = "Invalid token"


def extract_bearer_token(request: Request, config: SecurityConfig) -> str | None:
    """
    Read `Authorization: Bearer <token>`.

    Returns None when the header is absent, empty, or not a bearer credential;
    every one of those is "no credential" to the caller.
    """

    header_name = config.auth.authorization_header
    prefix = f"{config.auth.bearer_prefix} "

    raw = request.headers.get(header_name)
    if not raw:
        logger.info("Missing Authorization header (auth required) path=%s method=%s", request.url.path, request.method)
        return None

    if not raw.startswith(prefix):
        logger.warning("Invalid Authorization header format path=%s method=%s", request.url.path, request.method)
        return None

    token = raw[len(prefix) :].strip()
    if not token:
        logger.warning("Empty bearer token path=%s method=%s", request.url.path, request.method)
        return None
    return token


def authenticate(request: Request, config: SecurityConfig, secret: str) -> TokenClaims:
    """Return verified claims or raise 401."""

    token = extract_bearer_token(request, config)
    if token is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=UNAUTHORIZED)

    claims = verify_token(token, secret)
    if claims is None:
        logger.info("Rejected bearer token path=%s method=%s", request.url.path, request.method)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_TOKEN)
    return claims


# Compared against for unknown emails so login time does not depend on account existence.
_DUMMY_HASH = hash_password("assethub-timing-dummy")


def authenticate_user(db: Session, email: str, password: str) -> User:
    """Return the active user for (email, password) or raise 401."""

    user = db.execute(select(User).where(User.email == email.strip().lower())).scalar_one_or_none()
    if user is None:
        verify_password(password, _DUMMY_HASH)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    if not verify_password(password, user.password_hash) or not user.is_active:
        logger.info("Login rejected user_id=%s", user.id)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")

    return user


def claims_for(user: User) -> TokenClaims:
    return TokenClaims(user_id=user.id, email=user.email, role=user.role, department=user.department)
