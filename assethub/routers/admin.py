from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from assethub.db.session import get_db
from assethub.models.security import Role, User
from assethub.schemas.security import UserCreate, UserOut
from assethub.security.decorators import require_roles
from assethub.security.tokens import hash_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/users", response_model=list[UserOut])
@require_roles([Role.ADMIN.value])
def list_users(db: Session = Depends(get_db)) -> list[User]:
    return list(db.scalars(select(User).order_by(User.id)).all())


@router.post("/users", response_model=UserOut, status_code=status.HTTP_201_CREATED)
@require_roles([Role.ADMIN.value])
def create_user(payload: UserCreate, db: Session = Depends(get_db)) -> User:
    email = payload.email.strip().lower()
    if db.execute(select(User.id).where(User.email == email)).first() is not None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="User with this email already exists")

    user = User(
        email=email,
        first_name=payload.first_name,
        last_name=payload.last_name,
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        department=payload.department or None,
        is_active=True,
    )
    db.add(user)
    db.commit()
    logger.info("User created id=%s role=%s department=%s", user.id, user.role, user.department)
    return user
