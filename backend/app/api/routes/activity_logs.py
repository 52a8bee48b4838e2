"""Activity Log Routes — filtered read access to the audit trail (staff only)."""

from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.identity import Identity
from app.core.role_policy import Action
from app.api.dependencies import require_action
from app.infrastructure.database import get_db
from app.infrastructure.repositories import as_utc
from app.models.activity_log import ActivityLog
from app.schemas.activity_log import ActivityLogPage, ActivityLogResponse

router = APIRouter(prefix="/api/admin/activity-logs", tags=["admin"])


@router.get("", response_model=ActivityLogPage)
async def list_activity_logs(
    action: str | None = Query(None),
    user_id: str | None = Query(None, alias="userId"),
    start_date: datetime | None = Query(None, alias="startDate"),
    end_date: datetime | None = Query(None, alias="endDate"),
    skip: int = Query(0, ge=0),
    take: int = Query(50, ge=1, le=100),
    _: Identity = Depends(require_action(Action.VIEW_ACTIVITY_LOGS)),
    db: AsyncSession = Depends(get_db),
):
    """Newest first; every filter is optional."""
    conditions = []
    if action:
        conditions.append(ActivityLog.action == action)
    if user_id:
        conditions.append(ActivityLog.user_id == user_id)
    if start_date:
        conditions.append(ActivityLog.created_at >= as_utc(start_date))
    if end_date:
        conditions.append(ActivityLog.created_at <= as_utc(end_date))

    total = await db.scalar(
        select(func.count()).select_from(ActivityLog).where(*conditions),
    )
    result = await db.execute(
        select(ActivityLog)
        .where(*conditions)
        .order_by(ActivityLog.created_at.desc())
        .offset(skip)
        .limit(take),
    )
    logs = [
        ActivityLogResponse(
            id=row.id,
            user_id=row.user_id,
            user_name=row.user.name if row.user else None,
            user_email=row.user.email if row.user else None,
            action=row.action,
            target=row.target,
            target_id=row.target_id,
            changes=row.changes,
            created_at=as_utc(row.created_at),
        )
        for row in result.scalars().all()
    ]
    return ActivityLogPage(logs=logs, total=total or 0, skip=skip, take=take)
