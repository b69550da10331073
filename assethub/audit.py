"""
Best-effort audit trail for mutating actions.

Entries are written after the primary change has been committed. A failure
here is logged and rolled back on its own; it never reaches the caller and
never undoes the primary write.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from fastapi import Request
from pydantic import BaseModel
from sqlalchemy.orm import Session

from assethub.models.audit import AuditEntry

logger = logging.getLogger(__name__)

UNKNOWN = "unknown"


def snapshot(schema: type[BaseModel], obj: Any) -> dict[str, Any]:
    """JSON-ready state of an ORM object, shaped like its API representation."""
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


def request_origin(request: Request | None) -> tuple[str, str]:
    """(ip address, user agent), "unknown" where not available."""
    if request is None:
        return UNKNOWN, UNKNOWN

    ip = request.headers.get("x-forwarded-for") or request.headers.get("x-real-ip")
    if not ip and request.client is not None:
        ip = request.client.host
    user_agent = request.headers.get("user-agent")
    return ip or UNKNOWN, user_agent or UNKNOWN


def _dump(values: dict[str, Any] | None) -> str | None:
    return json.dumps(values) if values is not None else None


def record_audit(
    db: Session,
    *,
    user_id: int,
    action: str,
    resource: str,
    resource_id: int | str | None = None,
    old_values: dict[str, Any] | None = None,
    new_values: dict[str, Any] | None = None,
    request: Request | None = None,
) -> None:
    try:
        ip_address, user_agent = request_origin(request)
        entry = AuditEntry(
            user_id=user_id,
            action=action,
            resource=resource,
            resource_id=str(resource_id) if resource_id is not None else None,
            old_values=_dump(old_values),
            new_values=_dump(new_values),
            ip_address=ip_address,
            user_agent=user_agent,
        )
        db.add(entry)
        db.commit()
    except Exception:
        # Never fails the request: the primary change is already committed.
        db.rollback()
        logger.exception("Failed to record audit entry action=%s resource=%s id=%s", action, resource, resource_id)
