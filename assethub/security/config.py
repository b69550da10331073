"""
Route table for the request authorizer.

``config/security_config.yaml`` lists per-route overrides of a default rule:

    security:
      auth: {authorization_header: Authorization, bearer_prefix: Bearer}
      default: {auth_required: true, required_roles: []}
      routes:
        - path: /api/categories/{id}
          methods: [PUT, DELETE]
          required_roles: [ADMIN]

Lookup order for a request is: literal path, then ``{param}`` templates in file
order, then the default. Endpoint decorators are merged on top of the result by
``enforce_security``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

_PARAM = re.compile(r"\{[^/]+\}")


class AuthConfig(BaseModel):
    authorization_header: str = "Authorization"
    bearer_prefix: str = "Bearer"


class DefaultRule(BaseModel):
    auth_required: bool = True
    required_roles: list[str] = Field(default_factory=list)


class RouteRule(BaseModel):
    path: str
    methods: list[str] = Field(default_factory=lambda: ["GET"])

    # None inherits from the default rule.
    auth_required: bool | None = None
    required_roles: list[str] = Field(default_factory=list)

    @field_validator("methods")
    @classmethod
    def _upper_methods(cls, methods: list[str]) -> list[str]:
        return [m.upper() for m in methods]

    @property
    def is_template(self) -> bool:
        return _PARAM.search(self.path) is not None

    def pattern(self) -> re.Pattern[str]:
        # One path segment per parameter: "/api/categories/{id}" never matches "/api/categories/1/x".
        literal_parts = (re.escape(part) for part in _PARAM.split(self.path))
        return re.compile("^" + "[^/]+".join(literal_parts) + "$")

    def resolve(self, default: DefaultRule) -> EffectiveRule:
        auth_required = self.auth_required
        if auth_required is None:
            # Naming roles makes a route authenticated even under a public default.
            auth_required = default.auth_required or bool(self.required_roles)
        return EffectiveRule(
            auth_required=auth_required,
            required_roles=frozenset(self.required_roles or default.required_roles),
        )


class SecurityConfigModel(BaseModel):
    auth: AuthConfig = Field(default_factory=AuthConfig)
    default: DefaultRule = Field(default_factory=DefaultRule)
    routes: list[RouteRule] = Field(default_factory=list)


@dataclass(frozen=True)
class EffectiveRule:
    """What the authorizer enforces for one (path, method)."""

    auth_required: bool
    required_roles: frozenset[str]


class SecurityConfig:
    """Validated route table with precompiled lookups."""

    def __init__(self, model: SecurityConfigModel):
        self.model = model
        self._literal: dict[tuple[str, str], RouteRule] = {}
        self._templates: list[tuple[re.Pattern[str], RouteRule]] = []

        for rule in model.routes:
            if rule.is_template:
                self._templates.append((rule.pattern(), rule))
                continue
            for method in rule.methods:
                # First entry for a (path, method) wins, as with templates.
                self._literal.setdefault((rule.path, method), rule)

    @property
    def auth(self) -> AuthConfig:
        return self.model.auth

    def match(self, path: str, method: str) -> EffectiveRule:
        method = method.upper()
        default = self.model.default

        rule = self._literal.get((path, method))
        if rule is None:
            rule = next(
                (r for pattern, r in self._templates if method in r.methods and pattern.match(path)),
                None,
            )
        if rule is None:
            return EffectiveRule(
                auth_required=default.auth_required,
                required_roles=frozenset(default.required_roles),
            )
        return rule.resolve(default)


def load_security_config(path: Path) -> SecurityConfig:
    raw: dict[str, Any] = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if "security" not in raw:
        raise ValueError(f"Missing top-level 'security' key in config: {path}")
    return SecurityConfig(SecurityConfigModel.model_validate(raw["security"]))
