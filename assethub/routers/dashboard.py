from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from assethub.db.base import utcnow
from assethub.db.filters import Eq, all_of, asset_filter_sql, department_visibility
from assethub.db.session import get_db
from assethub.models.assets import DigitalAsset
from assethub.models.audit import AuditEntry
from assethub.models.security import User
from assethub.schemas.dashboard import AuditActivityBucket, CountBucket, DashboardStats, DateBucket
from assethub.security.context import TokenClaims
from assethub.security.dependencies import get_current_claims

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])

RECENT_DAYS = 7
UNASSIGNED = "Unassigned"


def _count(db: Session, stmt) -> int:
    return db.scalar(stmt) or 0


def _merge_unassigned(rows) -> list[tuple[str, int]]:
    # NULL and "" departments are the same bucket.
    merged: dict[str, int] = {}
    for dept, n in rows:
        name = dept or UNASSIGNED
        merged[name] = merged.get(name, 0) + n
    return sorted(merged.items(), key=lambda item: item[1], reverse=True)


@router.get("/stats", response_model=DashboardStats)
def dashboard_stats(
    db: Session = Depends(get_db),
    claims: TokenClaims = Depends(get_current_claims),
) -> DashboardStats:
    visibility = department_visibility(claims)
    visible = all_of(visibility) if visibility is not None else all_of()
    active = all_of(visible, Eq("is_active", True))

    total_assets = _count(db, select(func.count()).select_from(DigitalAsset).where(asset_filter_sql(visible)))
    active_assets = _count(db, select(func.count()).select_from(DigitalAsset).where(asset_filter_sql(active)))

    total_users = _count(db, select(func.count()).select_from(User))
    active_users = _count(db, select(func.count()).select_from(User).where(User.is_active.is_(True)))

    by_department = db.execute(
        select(DigitalAsset.department, func.count())
        .where(asset_filter_sql(active))
        .group_by(DigitalAsset.department)
        .order_by(func.count().desc())
    ).all()
    by_ratio = db.execute(
        select(DigitalAsset.aspect_ratio, func.count())
        .where(asset_filter_sql(active))
        .group_by(DigitalAsset.aspect_ratio)
        .order_by(DigitalAsset.aspect_ratio)
    ).all()

    now = utcnow()
    since = (now - timedelta(days=RECENT_DAYS - 1)).replace(hour=0, minute=0, second=0, microsecond=0)
    day = func.date(AuditEntry.created_at)
    by_action = db.execute(
        select(day, AuditEntry.action, AuditEntry.resource, func.count())
        .where(AuditEntry.created_at >= since)
        .group_by(day, AuditEntry.action, AuditEntry.resource)
        .order_by(day, AuditEntry.action, AuditEntry.resource)
    ).all()
    per_day: dict[str, int] = {}
    for d, _action, _resource, n in by_action:
        per_day[str(d)] = per_day.get(str(d), 0) + n
    days = [(since + timedelta(days=i)).date().isoformat() for i in range(RECENT_DAYS)]

    return DashboardStats(
        total_digital_assets=total_assets,
        active_digital_assets=active_assets,
        total_users=total_users,
        active_users=active_users,
        recent_activities=sum(per_day.values()),
        digital_assets_by_department=[CountBucket(name=name, count=n) for name, n in _merge_unassigned(by_department)],
        digital_assets_by_aspect_ratio=[CountBucket(name=ratio, count=n) for ratio, n in by_ratio],
        activities_over_time=[DateBucket(date=d, count=per_day.get(d, 0)) for d in days],
        recent_audit_activities=[
            AuditActivityBucket(date=str(d), action=action, resource=resource, count=n)
            for d, action, resource, n in by_action
        ],
    )
