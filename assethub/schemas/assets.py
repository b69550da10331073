from __future__ import annotations

from datetime import datetime

from pydantic import ConfigDict

from assethub.schemas.base import CamelModel


class UserSummaryOut(CamelModel):
    id: int
    first_name: str
    last_name: str
    email: str


class DigitalAssetOut(CamelModel):
    id: int
    content_name: str
    description: str | None
    aspect_ratio: str
    google_drive_link: str | None
    preview_file: str | None
    preview_file_name: str | None
    preview_file_size: int | None
    tags: str | None
    department: str | None
    is_active: bool
    created_by_id: int
    updated_by_id: int
    created_at: datetime
    updated_at: datetime
    created_by: UserSummaryOut | None
    updated_by: UserSummaryOut | None


class PaginationOut(CamelModel):
    page: int
    limit: int
    total: int
    pages: int


class DigitalAssetListOut(CamelModel):
    digital_assets: list[DigitalAssetOut]
    pagination: PaginationOut


class DigitalAssetEnvelope(CamelModel):
    digital_asset: DigitalAssetOut


class DigitalAssetDraft(CamelModel):
    """
    Create/update payload after transport decoding.

    Multipart forms and JSON bodies both end up here before validation. Every
    field is optional at this stage; required-field checks happen afterwards.
    """

    model_config = ConfigDict(extra="ignore")

    content_name: str | None = None
    description: str | None = None
    aspect_ratio: str | None = None
    google_drive_link: str | None = None
    tags: str | None = None
    department: str | None = None

    preview_file: str | None = None
    preview_file_name: str | None = None
    preview_file_size: int | None = None
