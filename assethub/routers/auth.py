from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from assethub.db.session import get_db
from assethub.schemas.security import ClaimsOut, LoginIn, LoginOut, UserOut
from assethub.security.auth import authenticate_user, claims_for
from assethub.security.context import TokenClaims
from assethub.security.decorators import public
from assethub.security.dependencies import get_current_claims, get_token_secret
from assethub.security.tokens import issue_token
from assethub.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post("/auth/login", response_model=LoginOut)
@public()
def login(
    payload: LoginIn,
    db: Session = Depends(get_db),
    secret: str = Depends(get_token_secret),
) -> LoginOut:
    user = authenticate_user(db, payload.email, payload.password)
    token = issue_token(claims_for(user), secret, get_settings().token_ttl_seconds)
    logger.info("Login succeeded user_id=%s role=%s", user.id, user.role)
    return LoginOut(token=token, user=UserOut.model_validate(user))


@router.get("/me", response_model=ClaimsOut)
def me(claims: TokenClaims = Depends(get_current_claims)) -> ClaimsOut:
    # Straight from the token; not re-read from the users table.
    return ClaimsOut(
        id=claims.user_id,
        email=claims.email,
        role=claims.role,
        department=claims.department,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )
