"""Activity Log Schemas — read model for the admin audit trail."""

from datetime import datetime

from pydantic import BaseModel


class ActivityLogResponse(BaseModel):
    id: str
    user_id: str
    user_name: str | None = None
    user_email: str | None = None
    action: str
    target: str | None = None
    target_id: str | None = None
    changes: dict | None = None
    created_at: datetime


class ActivityLogPage(BaseModel):
    logs: list[ActivityLogResponse]
    total: int
    skip: int
    take: int
