from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

MIN_JWT_SECRET_LENGTH = 32


class Settings(BaseSettings):
    """
    App settings.

    Notes:
    - Defaults are local and deterministic (SQLite file next to the repo).
    - Everything can be overridden with `ASSETHUB_*` environment variables.
    - There is no default JWT secret; `ASSETHUB_JWT_SECRET` must be provided.
    """

    model_config = SettingsConfigDict(env_prefix="ASSETHUB_", extra="ignore")

    db_url: str | None = None
    security_config_path: str | None = None
    log_level: str = "INFO"

    jwt_secret: str | None = None
    token_ttl_seconds: int = 24 * 60 * 60

    # Used when an asset is created without a department by a caller who has none.
    default_department: str = "Digital"

    seed_admin_email: str | None = None
    seed_admin_password: str | None = None

    def resolved_db_url(self) -> str:
        if self.db_url:
            return self.db_url

        repo_root = Path(__file__).resolve().parents[1]
        db_path = repo_root / "assethub.db"
        return f"sqlite:///{db_path}"

    def resolved_security_config_path(self) -> Path:
        if self.security_config_path:
            return Path(self.security_config_path)

        repo_root = Path(__file__).resolve().parents[1]
        return repo_root / "config" / "security_config.yaml"

    def resolved_jwt_secret(self) -> str:
        secret = (self.jwt_secret or "").strip()
        if not secret:
            raise ValueError("ASSETHUB_JWT_SECRET must be set")
        if len(secret) < MIN_JWT_SECRET_LENGTH:
            raise ValueError(f"ASSETHUB_JWT_SECRET must be at least {MIN_JWT_SECRET_LENGTH} characters")
        return secret


@lru_cache
def get_settings() -> Settings:
    return Settings()
