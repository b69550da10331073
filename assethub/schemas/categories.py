from __future__ import annotations

from datetime import datetime

from pydantic import Field

from assethub.schemas.base import CamelModel


class CategoryOut(CamelModel):
    id: int
    type: str
    name: str
    description: str | None
    is_active: bool
    created_at: datetime
    updated_at: datetime


class CategoryIn(CamelModel):
    name: str = Field(max_length=100)
    description: str | None = None


class CategoryUpdate(CamelModel):
    name: str | None = Field(default=None, max_length=100)
    description: str | None = None


class CategoryListOut(CamelModel):
    categories: list[CategoryOut]
