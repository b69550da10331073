from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from assethub.audit import record_audit, snapshot
from assethub.db.session import get_db
from assethub.models.security import PermissionGrant
from assethub.schemas.security import PermissionGrantIn, PermissionGrantListOut, PermissionGrantOut
from assethub.security.context import TokenClaims
from assethub.security.dependencies import get_current_claims

logger = logging.getLogger(__name__)

# ADMIN-only via config/security_config.yaml.
router = APIRouter(prefix="/api/permissions", tags=["permissions"])


@router.get("", response_model=PermissionGrantListOut)
def list_permission_grants(
    department: str = Query(..., min_length=1),
    db: Session = Depends(get_db),
) -> PermissionGrantListOut:
    stmt = select(PermissionGrant).where(PermissionGrant.department == department).order_by(PermissionGrant.module)
    rows = db.scalars(stmt).all()
    return PermissionGrantListOut(permissions=[PermissionGrantOut.model_validate(row) for row in rows])


@router.post("", response_model=PermissionGrantOut)
def upsert_permission_grant(
    payload: PermissionGrantIn,
    request: Request,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> PermissionGrant:
    grant = db.scalars(
        select(PermissionGrant).where(
            PermissionGrant.department == payload.department,
            PermissionGrant.module == payload.module.value,
        )
    ).first()

    before = snapshot(PermissionGrantOut, grant) if grant is not None else None
    if grant is None:
        grant = PermissionGrant(department=payload.department, module=payload.module.value)
        db.add(grant)

    grant.can_read = payload.can_read
    grant.can_write = payload.can_write
    grant.can_delete = payload.can_delete

    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Failed to save permission grant department=%s module=%s", payload.department, payload.module.value)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Failed to save permissions"
        ) from exc

    logger.info(
        "Permission grant saved department=%s module=%s read=%s write=%s delete=%s",
        grant.department,
        grant.module,
        grant.can_read,
        grant.can_write,
        grant.can_delete,
    )
    record_audit(
        db,
        user_id=claims.user_id,
        action="UPSERT_PERMISSION",
        resource="PermissionGrant",
        resource_id=grant.id,
        old_values=before,
        new_values=snapshot(PermissionGrantOut, grant),
        request=request,
    )
    return grant
