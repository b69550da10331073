from __future__ import annotations

from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from assethub.db.base import Base, utcnow
from assethub.models.security import User


class AspectRatio(str, Enum):
    RATIO_4_3 = "RATIO_4_3"
    RATIO_9_16 = "RATIO_9_16"


class CategoryType(str, Enum):
    ASSET = "ASSET"
    DOCUMENT = "DOCUMENT"
    DEPARTMENT = "DEPARTMENT"


class DigitalAsset(Base):
    __tablename__ = "digital_assets"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    content_name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Plain string: enum membership is checked on the write path only, so an
    # unknown value in a read filter simply matches nothing.
    aspect_ratio: Mapped[str] = mapped_column(String(20), nullable=False, index=True)

    google_drive_link: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Preview image stored inline as base64.
    preview_file: Mapped[str | None] = mapped_column(Text, nullable=True)
    preview_file_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    preview_file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    tags: Mapped[str | None] = mapped_column(Text, nullable=True)

    # None / "" means visible to every department.
    department: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    created_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    updated_by_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    created_by: Mapped[User] = relationship(foreign_keys=[created_by_id])
    updated_by: Mapped[User] = relationship(foreign_keys=[updated_by_id])


class Category(Base):
    """Shared shape for the ASSET / DOCUMENT / DEPARTMENT taxonomies."""

    __tablename__ = "categories"
    __table_args__ = (UniqueConstraint("type", "name", name="uq_category_type_name"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    type: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)
