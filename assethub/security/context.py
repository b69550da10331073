from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from assethub.models.security import Role


@dataclass(frozen=True)
class TokenClaims:
    """
    Identity carried by a bearer token.

    Small and serializable so it can sit on `request.state` for the request
    lifetime. Role and department are trusted as issued until the token expires.
    """

    user_id: int
    email: str
    role: str
    department: str | None
    issued_at: datetime | None = None
    expires_at: datetime | None = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN.value
