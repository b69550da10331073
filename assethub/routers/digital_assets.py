from __future__ import annotations

import base64
import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pydantic import ValidationError
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, selectinload
from starlette.datastructures import UploadFile

from assethub.audit import record_audit, snapshot
from assethub.db.filters import Page, asset_filter_sql, build_asset_filter, visible_asset_filter
from assethub.db.session import get_db
from assethub.models.assets import AspectRatio, DigitalAsset
from assethub.models.security import SystemModule
from assethub.schemas.assets import (
    DigitalAssetDraft,
    DigitalAssetEnvelope,
    DigitalAssetListOut,
    DigitalAssetOut,
    PaginationOut,
)
from assethub.schemas.base import MessageOut
from assethub.schemas.security import PermissionFlagsOut, PermissionsEnvelope
from assethub.security.context import TokenClaims
from assethub.security.dependencies import get_current_claims
from assethub.security.permissions import Action, require_permission, resolve_permissions
from assethub.settings import get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/digital-assets", tags=["digital_assets"])

RESOURCE = "DigitalAsset"
WHAT = "digital assets"

_FORM_FIELDS = ("contentName", "description", "aspectRatio", "googleDriveLink", "tags", "department")
_VALID_RATIOS = frozenset(r.value for r in AspectRatio)

MAX_LIMIT = 100
MAX_PAGE = 100_000


async def decode_draft(request: Request) -> DigitalAssetDraft | None:
    """
    Normalize a multipart form or a JSON body into one ``DigitalAssetDraft``.

    Returns None when the body cannot be decoded at all; the endpoint turns
    that into a 400 after its permission check.
    """

    content_type = request.headers.get("content-type", "")

    if "multipart/form-data" in content_type or "application/x-www-form-urlencoded" in content_type:
        form = await request.form()
        fields: dict[str, object] = {}
        for name in _FORM_FIELDS:
            value = form.get(name)
            if isinstance(value, str):
                fields[name] = value

        upload = form.get("previewFile")
        if isinstance(upload, UploadFile):
            data = await upload.read()
            if data:
                fields["previewFile"] = base64.b64encode(data).decode("ascii")
                fields["previewFileName"] = upload.filename
                fields["previewFileSize"] = len(data)
        return DigitalAssetDraft.model_validate(fields)

    try:
        body = await request.json()
    except ValueError:
        logger.info("Undecodable digital asset body path=%s", request.url.path)
        return None
    if not isinstance(body, dict):
        return None
    try:
        return DigitalAssetDraft.model_validate(body)
    except ValidationError:
        logger.info("Digital asset body failed type validation path=%s", request.url.path)
        return None


def _require_draft(draft: DigitalAssetDraft | None) -> DigitalAssetDraft:
    if draft is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid request body")
    return draft


def _check_aspect_ratio(value: str) -> None:
    if value not in _VALID_RATIOS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid aspect ratio. Must be RATIO_4_3 or RATIO_9_16",
        )


def _with_people(stmt):
    return stmt.options(selectinload(DigitalAsset.created_by), selectinload(DigitalAsset.updated_by))


def _get_visible(db: Session, claims: TokenClaims, asset_id: int) -> DigitalAsset:
    where = asset_filter_sql(visible_asset_filter(claims, asset_id))
    asset = db.scalars(_with_people(select(DigitalAsset).where(where))).first()
    if asset is None:
        # Assets outside the caller's department look the same as missing ones.
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Digital asset not found")
    return asset


def _commit(db: Session, failure: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s", failure)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure) from exc


@router.get("", response_model=DigitalAssetListOut)
def list_digital_assets(
    page: int = Query(1, ge=1, le=MAX_PAGE),
    limit: int = Query(10, ge=1, le=MAX_LIMIT),
    search: str = "",
    aspect_ratio: str = Query("", alias="aspectRatio"),
    department: str = "",
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> DigitalAssetListOut:
    require_permission(db, claims, SystemModule.DIGITAL_ASSETS, Action.READ, what=WHAT)

    where = asset_filter_sql(build_asset_filter(claims, search, aspect_ratio, department))
    paging = Page(page=page, limit=limit)

    total = db.scalar(select(func.count()).select_from(DigitalAsset).where(where)) or 0
    rows = db.scalars(
        _with_people(select(DigitalAsset).where(where))
        .order_by(DigitalAsset.created_at.desc(), DigitalAsset.id.desc())
        .offset(paging.offset)
        .limit(paging.limit)
    ).all()

    return DigitalAssetListOut(
        digital_assets=[DigitalAssetOut.model_validate(row) for row in rows],
        pagination=PaginationOut(page=page, limit=limit, total=total, pages=paging.page_count(total)),
    )


@router.post("", response_model=DigitalAssetEnvelope, status_code=status.HTTP_201_CREATED)
def create_digital_asset(
    request: Request,
    draft: DigitalAssetDraft | None = Depends(decode_draft),
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> DigitalAssetEnvelope:
    require_permission(db, claims, SystemModule.DIGITAL_ASSETS, Action.WRITE, what=WHAT)
    draft = _require_draft(draft)

    if not draft.content_name or not draft.aspect_ratio:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Content name and aspect ratio are required",
        )
    _check_aspect_ratio(draft.aspect_ratio)

    asset = DigitalAsset(
        content_name=draft.content_name,
        description=draft.description,
        aspect_ratio=draft.aspect_ratio,
        google_drive_link=draft.google_drive_link,
        preview_file=draft.preview_file,
        preview_file_name=draft.preview_file_name,
        preview_file_size=draft.preview_file_size,
        tags=draft.tags,
        department=draft.department or claims.department or get_settings().default_department,
        created_by_id=claims.user_id,
        updated_by_id=claims.user_id,
    )
    db.add(asset)
    _commit(db, "Failed to create digital asset")
    logger.info("Digital asset created id=%s user_id=%s department=%s", asset.id, claims.user_id, asset.department)

    created = snapshot(DigitalAssetOut, asset)
    record_audit(
        db,
        user_id=claims.user_id,
        action="CREATE_DIGITAL_ASSET",
        resource=RESOURCE,
        resource_id=asset.id,
        new_values=created,
        request=request,
    )
    return DigitalAssetEnvelope(digital_asset=DigitalAssetOut.model_validate(created))


@router.patch("", response_model=PermissionsEnvelope)
def get_digital_asset_permissions(
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> PermissionsEnvelope:
    flags = resolve_permissions(db, claims.department, claims.role, SystemModule.DIGITAL_ASSETS)
    return PermissionsEnvelope(
        permissions=PermissionFlagsOut(
            can_read=flags.can_read,
            can_write=flags.can_write,
            can_delete=flags.can_delete,
        )
    )


@router.get("/{asset_id}", response_model=DigitalAssetEnvelope)
def get_digital_asset(
    asset_id: int,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> DigitalAssetEnvelope:
    require_permission(db, claims, SystemModule.DIGITAL_ASSETS, Action.READ, what=WHAT)
    asset = _get_visible(db, claims, asset_id)
    return DigitalAssetEnvelope(digital_asset=DigitalAssetOut.model_validate(asset))


@router.put("/{asset_id}", response_model=DigitalAssetEnvelope)
def update_digital_asset(
    asset_id: int,
    request: Request,
    draft: DigitalAssetDraft | None = Depends(decode_draft),
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> DigitalAssetEnvelope:
    require_permission(db, claims, SystemModule.DIGITAL_ASSETS, Action.WRITE, what=WHAT)
    draft = _require_draft(draft)
    asset = _get_visible(db, claims, asset_id)

    changes = draft.model_dump(exclude_unset=True)
    if "content_name" in changes and not changes["content_name"]:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Content name cannot be empty")
    if "aspect_ratio" in changes:
        _check_aspect_ratio(changes["aspect_ratio"] or "")

    before = snapshot(DigitalAssetOut, asset)
    for field, value in changes.items():
        setattr(asset, field, value)
    asset.updated_by_id = claims.user_id
    _commit(db, "Failed to update digital asset")

    after = snapshot(DigitalAssetOut, asset)
    record_audit(
        db,
        user_id=claims.user_id,
        action="UPDATE_DIGITAL_ASSET",
        resource=RESOURCE,
        resource_id=asset_id,
        old_values=before,
        new_values=after,
        request=request,
    )
    return DigitalAssetEnvelope(digital_asset=DigitalAssetOut.model_validate(after))


@router.delete("/{asset_id}", response_model=MessageOut)
def delete_digital_asset(
    asset_id: int,
    request: Request,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> MessageOut:
    require_permission(db, claims, SystemModule.DIGITAL_ASSETS, Action.DELETE, what=WHAT)
    asset = _get_visible(db, claims, asset_id)

    before = snapshot(DigitalAssetOut, asset)
    asset.is_active = False
    asset.updated_by_id = claims.user_id
    _commit(db, "Failed to delete digital asset")

    record_audit(
        db,
        user_id=claims.user_id,
        action="DELETE_DIGITAL_ASSET",
        resource=RESOURCE,
        resource_id=asset_id,
        old_values=before,
        request=request,
    )
    return MessageOut(message="Digital asset deleted successfully")
