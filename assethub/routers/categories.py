from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from assethub.audit import record_audit, snapshot
from assethub.db.session import get_db
from assethub.models.assets import Category, CategoryType
from assethub.schemas.base import MessageOut
from assethub.schemas.categories import CategoryIn, CategoryListOut, CategoryOut, CategoryUpdate
from assethub.security.context import TokenClaims
from assethub.security.dependencies import get_current_claims

logger = logging.getLogger(__name__)

# Mutations are ADMIN-only via config/security_config.yaml.
router = APIRouter(prefix="/api/categories", tags=["categories"])

RESOURCE = "Category"


def _parse_type(raw: str) -> CategoryType:
    try:
        return CategoryType(raw.upper())
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid category type. Must be ASSET, DOCUMENT or DEPARTMENT",
        ) from exc


def _clean_name(name: str | None) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category name is required")
    return cleaned


def _ensure_unique(db: Session, category_type: str, name: str, exclude_id: int | None = None) -> None:
    stmt = select(Category.id).where(Category.type == category_type, Category.name == name)
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    if db.execute(stmt).first() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category with this name already exists")


def _get_active(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None or not category.is_active:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found")
    return category


def _commit(db: Session, failure: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        # Lost a race against another writer on the (type, name) constraint.
        db.rollback()
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST, detail="Category with this name already exists"
        ) from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("%s", failure)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=failure) from exc


@router.get("", response_model=CategoryListOut)
def list_categories(
    type: str = Query(...),
    db: Session = Depends(get_db),
) -> CategoryListOut:
    category_type = _parse_type(type)
    stmt = (
        select(Category)
        .where(Category.type == category_type.value, Category.is_active.is_(True))
        .order_by(Category.name)
    )
    rows = db.scalars(stmt).all()
    return CategoryListOut(categories=[CategoryOut.model_validate(row) for row in rows])


@router.post("", response_model=CategoryOut, status_code=status.HTTP_201_CREATED)
def create_category(
    payload: CategoryIn,
    request: Request,
    type: str = Query(...),
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> Category:
    category_type = _parse_type(type)
    name = _clean_name(payload.name)

    category = db.scalars(
        select(Category).where(Category.type == category_type.value, Category.name == name)
    ).first()
    if category is not None and category.is_active:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category with this name already exists")

    if category is None:
        category = Category(type=category_type.value, name=name, description=payload.description)
        db.add(category)
    else:
        # Re-creating a soft-deleted name brings the old row back.
        category.is_active = True
        category.description = payload.description
    _commit(db, "Failed to create category")

    record_audit(
        db,
        user_id=claims.user_id,
        action="CREATE_CATEGORY",
        resource=RESOURCE,
        resource_id=category.id,
        new_values=snapshot(CategoryOut, category),
        request=request,
    )
    return category


@router.put("/{category_id}", response_model=CategoryOut)
def update_category(
    category_id: int,
    payload: CategoryUpdate,
    request: Request,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> Category:
    category = _get_active(db, category_id)
    before = snapshot(CategoryOut, category)

    if payload.name is not None:
        name = _clean_name(payload.name)
        _ensure_unique(db, category.type, name, exclude_id=category.id)
        category.name = name
    if "description" in payload.model_fields_set:
        category.description = payload.description
    _commit(db, "Failed to update category")

    record_audit(
        db,
        user_id=claims.user_id,
        action="UPDATE_CATEGORY",
        resource=RESOURCE,
        resource_id=category.id,
        old_values=before,
        new_values=snapshot(CategoryOut, category),
        request=request,
    )
    return category


@router.delete("/{category_id}", response_model=MessageOut)
def delete_category(
    category_id: int,
    request: Request,
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> MessageOut:
    category = _get_active(db, category_id)
    before = snapshot(CategoryOut, category)

    category.is_active = False
    _commit(db, "Failed to delete category")

    record_audit(
        db,
        user_id=claims.user_id,
        action="DELETE_CATEGORY",
        resource=RESOURCE,
        resource_id=category_id,
        old_values=before,
        request=request,
    )
    return MessageOut(message="Category deleted successfully")
