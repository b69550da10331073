from __future__ import annotations

import logging

from fastapi import Depends, HTTPException, Request, status

from assethub.security.auth import authenticate
from assethub.security.config import SecurityConfig
from assethub.security.context import TokenClaims
from assethub.settings import get_settings

logger = logging.getLogger(__name__)

FORBIDDEN = "Forbidden"


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def get_token_secret() -> str:
    return get_settings().resolved_jwt_secret()


def get_current_claims(request: Request) -> TokenClaims:
    claims = getattr(request.state, "claims", None)
    if claims is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return claims


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    secret: str = Depends(get_token_secret),
) -> None:
    """
    Global security dependency.

    Two stages, in order:
    1. authentication: a valid bearer token, else 401;
    2. authorization: the caller's role must be in the allowed set (route table
       plus `@require_roles` metadata), else 403.

    Runs before the endpoint body, so a failed gate never reaches the handler.
    """

    path = request.url.path
    method = request.method.upper()

    rule = config.match(path, method)

    endpoint = request.scope.get("endpoint")
    decorator_roles = set(getattr(endpoint, "__security_required_roles__", set())) if endpoint else set()
    decorator_public = bool(getattr(endpoint, "__security_public__", False)) if endpoint else False

    required_roles = set(rule.required_roles) | decorator_roles
    auth_required = (rule.auth_required and not decorator_public) or bool(required_roles)
    if not auth_required:
        return

    claims = authenticate(request, config, secret)

    if required_roles and claims.role not in required_roles:
        logger.info(
            "Role check failed user_id=%s role=%s required=%s path=%s method=%s",
            claims.user_id,
            claims.role,
            sorted(required_roles),
            path,
            method,
        )
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN)

    request.state.claims = claims
