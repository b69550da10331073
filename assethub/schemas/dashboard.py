from __future__ import annotations

from assethub.schemas.base import CamelModel


class CountBucket(CamelModel):
    name: str
    count: int


class DateBucket(CamelModel):
    date: str
    count: int


class AuditActivityBucket(CamelModel):
    date: str
    action: str
    resource: str
    count: int


class DashboardStats(CamelModel):
    """Chart-ready dashboard view model."""

    total_digital_assets: int
    active_digital_assets: int
    total_users: int
    active_users: int
    recent_activities: int
    digital_assets_by_department: list[CountBucket]
    digital_assets_by_aspect_ratio: list[CountBucket]
    activities_over_time: list[DateBucket]
    recent_audit_activities: list[AuditActivityBucket]
