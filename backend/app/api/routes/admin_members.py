"""Admin Member Routes — member creation, KPIs and bulk renewal reminders.

Invariants:
    - All endpoints require STAFF_ROLES (COMMITTEE or ADMIN)
    - Member creation is refused with 409 when the email is already registered
    - An ACTIVE member is never created without a future renewal date
    - Statistics are computed over effective statuses as of the request clock
"""

import logging
import uuid
from datetime import datetime

from fastapi import APIRouter, Depends, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.domain_types import (
    AuditAction, MembershipId, MembershipStatus, TargetKind, UserId,
)
from app.core.errors import ConflictError
from app.core.identity import Identity
from app.core.membership import add_months, new_membership
from app.core.membership_stats import compute_dashboard_stats, compute_member_stats
from app.core.repository_protocols import Mailer
from app.core.role_policy import Action
from app.api.dependencies import get_audit_recorder, get_clock, require_action
from app.api.routes.member_helpers import member_view, recipient_lookup, reload_membership
from app.infrastructure.database import get_db
from app.infrastructure.mailer import get_mailer
from app.infrastructure.repositories import SqlMembershipRepository, as_utc
from app.models.user import User
from app.schemas.member import (
    DashboardStats, MemberCreate, MemberResponse, MemberStats, ReminderResult,
)
from app.services.audit_recorder import AuditRecorder
from app.services.renewal_notifier import RenewalNotifier

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin", tags=["admin"])


async def _user_created_at(db: AsyncSession) -> list[datetime]:
    result = await db.execute(select(User.created_at))
    return [as_utc(created) for created in result.scalars().all()]


@router.post(
    "/members", response_model=MemberResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_member(
    body: MemberCreate,
    identity: Identity = Depends(require_action(Action.CREATE_MEMBER)),
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_clock),
):
    """Create a user account together with its dues record."""
    existing = await db.execute(select(User.id).where(User.email == body.email))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError("Un compte existe déjà avec cet email")

    renewal_date = body.renewal_date
    if body.status is MembershipStatus.ACTIVE and renewal_date is None:
        renewal_date = add_months(now, settings.membership_period_months)

    user_id = UserId(str(uuid.uuid4()))
    # Validates the dues fields before anything is written
    record = new_membership(
        MembershipId(str(uuid.uuid4())), user_id, now,
        status=body.status, amount=body.amount, renewal_date=renewal_date,
        paid_at=body.paid_at, notes=body.notes,
    )

    user = User(id=user_id, name=body.name, email=body.email, created_at=now, updated_at=now)
    db.add(user)
    await db.flush()
    await SqlMembershipRepository(db).save(record)
    await reload_membership(db, user)

    logger.info("Member created", extra={"user_id": identity.user_id, "target_id": user_id})
    audit.record(
        identity.user_id, AuditAction.MEMBER_CREATED, TargetKind.USER, user_id,
        {"email": body.email, "status": body.status.value},
    )
    return member_view(user, now)


@router.get("/members/stats", response_model=MemberStats)
async def member_stats(
    _: Identity = Depends(require_action(Action.VIEW_STATISTICS)),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_clock),
):
    memberships = await SqlMembershipRepository(db).list_all()
    return compute_member_stats(
        memberships, await _user_created_at(db), now, settings.renewal_window_days,
    )


@router.get("/dashboard", response_model=DashboardStats)
async def dashboard(
    _: Identity = Depends(require_action(Action.VIEW_DASHBOARD)),
    db: AsyncSession = Depends(get_db),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_clock),
):
    memberships = await SqlMembershipRepository(db).list_all()
    return compute_dashboard_stats(
        memberships, await _user_created_at(db), now, settings.renewal_window_days,
    )


@router.post("/renewals/remind", response_model=ReminderResult)
async def remind_due_members(
    identity: Identity = Depends(require_action(Action.SEND_RENEWAL_REMINDER)),
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_clock),
):
    """Remind every ACTIVE member whose renewal falls within the window."""
    notifier = RenewalNotifier(
        SqlMembershipRepository(db), mailer, recipient_lookup(db),
        club_name=settings.club_name, committee_email=settings.committee_email,
    )
    reminded = await notifier.notify_due(now, settings.renewal_window_days)
    for membership in reminded:
        audit.record(
            identity.user_id, AuditAction.RENEWAL_REMINDER_SENT,
            TargetKind.MEMBERSHIP, membership.id,
            {"renewalDate": membership.renewal_date.isoformat()},
        )
    return ReminderResult(sent=len(reminded))
