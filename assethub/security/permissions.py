"""
Department/module permission resolution.

Model:
- ADMIN callers have full access to every module; stored grants are ignored.
- Everyone else gets the grant stored for (department, module).
- With no grant, the default is "visible but not mutable": read only.

Grants are looked up on every call; nothing is cached across requests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from assethub.models.security import PermissionGrant, Role, SystemModule
from assethub.security.context import TokenClaims

logger = logging.getLogger(__name__)


class Action(str, Enum):
    READ = "read"
    WRITE = "write"
    DELETE = "delete"


@dataclass(frozen=True)
class PermissionFlags:
    can_read: bool
    can_write: bool
    can_delete: bool

    def allows(self, action: Action) -> bool:
        if action is Action.READ:
            return self.can_read
        if action is Action.WRITE:
            return self.can_write
        return self.can_delete


FULL_ACCESS = PermissionFlags(can_read=True, can_write=True, can_delete=True)
DEFAULT_PERMISSIONS = PermissionFlags(can_read=True, can_write=False, can_delete=False)


def resolve_permissions(
    db: Session,
    department: str | None,
    role: str,
    module: SystemModule | str,
) -> PermissionFlags:
    """Effective read/write/delete flags for (department, role, module)."""

    if role == Role.ADMIN.value:
        return FULL_ACCESS

    if not department:
        # Grants are keyed by department; a department-less caller has none.
        return DEFAULT_PERMISSIONS

    module_key = module.value if isinstance(module, SystemModule) else str(module)
    grant = db.execute(
        select(PermissionGrant).where(
            PermissionGrant.department == department,
            PermissionGrant.module == module_key,
        )
    ).scalar_one_or_none()

    if grant is None:
        return DEFAULT_PERMISSIONS

    return PermissionFlags(
        can_read=grant.can_read,
        can_write=grant.can_write,
        can_delete=grant.can_delete,
    )


_DENIED_MESSAGES = {
    Action.READ: "You do not have permission to view {what}",
    Action.WRITE: "You do not have permission to modify {what}",
    Action.DELETE: "You do not have permission to delete {what}",
}


def require_permission(
    db: Session,
    claims: TokenClaims,
    module: SystemModule,
    action: Action,
    *,
    what: str = "this resource",
) -> PermissionFlags:
    """Resolve the caller's flags and raise 403 unless ``action`` is allowed."""

    flags = resolve_permissions(db, claims.department, claims.role, module)
    if not flags.allows(action):
        logger.info(
            "Permission denied user_id=%s department=%s module=%s action=%s",
            claims.user_id,
            claims.department,
            module.value,
            action.value,
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=_DENIED_MESSAGES[action].format(what=what),
        )
    return flags
