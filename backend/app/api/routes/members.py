"""Member Routes — directory, self-service profile and dues lifecycle endpoints.

Invariants:
    - Every handler re-checks access through role_policy behind the route guard
    - GET /api/members/{id} is allowed for staff and for the member themself
    - Lifecycle endpoints delegate to MembershipService; statuses returned are
      effective statuses as of the request clock
    - Operations needing an existing dues record answer 422 MEMBERSHIP_MISSING

Design Decisions:
    - Directory filtering and sorting run in Python over effective statuses: a
      stored ACTIVE past its renewal date must be listed as EXPIRED
    - /me is declared before /{member_id} so the literal path wins
"""

import logging
import math
from datetime import datetime, timezone

from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.domain_types import AuditAction, MembershipStatus, TargetKind
from app.core.errors import MembershipMissingError
from app.core.identity import Identity, Principal
from app.core.membership import (
    AdminReactivate,
    AdminSuspend,
    PaymentConfirmed,
    effective_status,
)
from app.core.repository_protocols import Mailer
from app.core.role_policy import Action
from app.api.dependencies import (
    ensure_allowed,
    get_audit_recorder,
    get_clock,
    get_identity,
    get_membership_service,
    require_action,
    require_identity,
)
from app.api.routes.member_helpers import (
    get_user_or_404,
    member_view,
    recipient_lookup,
    reload_membership,
)
from app.infrastructure.database import get_db
from app.infrastructure.mailer import get_mailer
from app.infrastructure.repositories import SqlMembershipRepository, to_record
from app.models.user import User
from app.schemas.member import (
    MemberPage,
    MemberResponse,
    MembershipUpdate,
    PaymentConfirmation,
    ProfileUpdate,
)
from app.services.audit_recorder import AuditRecorder
from app.services.membership_service import MembershipService
from app.services.renewal_notifier import Recipient, RenewalNotifier

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/members", tags=["members"])

PAGE_SIZE = 20
_FAR_FUTURE = datetime.max.replace(tzinfo=timezone.utc)


def _sort_key(sort: str):
    if sort == "joinedAt":
        return lambda u: to_record(u.membership).joined_at if u.membership else _FAR_FUTURE
    if sort == "renewalDate":
        return lambda u: (
            to_record(u.membership).renewal_date or _FAR_FUTURE
            if u.membership else _FAR_FUTURE
        )
    return lambda u: (u.name or "").casefold()


def _matches(user: User, status: MembershipStatus | None, search: str, now: datetime) -> bool:
    if status is not None:
        if user.membership is None:
            return False
        if effective_status(to_record(user.membership), now) is not status:
            return False
    if search:
        needle = search.casefold()
        haystack = f"{user.name or ''} {user.email}".casefold()
        if needle not in haystack:
            return False
    return True


@router.get("", response_model=MemberPage)
async def list_members(
    status: str | None = Query(None),
    search: str = Query(""),
    sort: str = Query("name"),
    page: int = Query(1),
    _: Identity = Depends(require_action(Action.LIST_MEMBERS)),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    """Paginated member directory (staff only)."""
    try:
        status_filter = MembershipStatus(status) if status else None
    except ValueError:
        status_filter = None
    page = max(1, page)

    result = await db.execute(select(User))
    users = [
        u for u in result.scalars().all()
        if _matches(u, status_filter, search.strip(), now)
    ]
    users.sort(key=_sort_key(sort))
    total = len(users)
    window = users[(page - 1) * PAGE_SIZE: page * PAGE_SIZE]
    return MemberPage(
        members=[member_view(u, now) for u in window],
        total=total,
        pages=math.ceil(total / PAGE_SIZE),
        page=page,
    )


# ─── Self-service ───────────────────────────────────────────────

@router.get("/me", response_model=MemberResponse)
async def get_own_profile(
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    user = await get_user_or_404(db, identity.user_id)
    return member_view(user, now)


@router.patch("/me", response_model=MemberResponse)
async def update_own_profile(
    body: ProfileUpdate,
    identity: Identity = Depends(require_identity),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    """Members edit their name and contact details; dues fields stay staff-only."""
    ensure_allowed(identity, Action.UPDATE_OWN_PROFILE, identity.user_id)
    user = await get_user_or_404(db, identity.user_id)
    changes = body.model_dump(exclude_unset=True)
    name = changes.pop("name", None)
    if name is not None:
        user.name = name
    if user.membership is not None:
        for field, value in changes.items():
            setattr(user.membership, field, value)
    await db.commit()
    await db.refresh(user)
    return member_view(user, now)


# ─── Staff views ────────────────────────────────────────────────

@router.get("/{member_id}", response_model=MemberResponse)
async def get_member(
    member_id: str,
    identity: Principal = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    now: datetime = Depends(get_clock),
):
    ensure_allowed(identity, Action.VIEW_MEMBER, member_id)
    user = await get_user_or_404(db, member_id)
    return member_view(user, now)


@router.patch("/{member_id}", response_model=MemberResponse)
async def update_membership(
    member_id: str,
    body: MembershipUpdate,
    identity: Identity = Depends(require_action(Action.UPDATE_MEMBERSHIP)),
    db: AsyncSession = Depends(get_db),
    service: MembershipService = Depends(get_membership_service),
    now: datetime = Depends(get_clock),
):
    """Administrative upsert of the member's dues record."""
    user = await get_user_or_404(db, member_id)
    await service.update_fields(
        identity, user.id, now,
        status=body.status,
        renewal_date=body.renewal_date,
        paid_at=body.paid_at,
        amount=body.amount,
        notes=body.notes,
    )
    await reload_membership(db, user)
    return member_view(user, now)


@router.post("/{member_id}/send-reminder")
async def send_reminder(
    member_id: str,
    identity: Identity = Depends(require_action(Action.SEND_RENEWAL_REMINDER)),
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    mailer: Mailer = Depends(get_mailer),
    settings: Settings = Depends(get_settings),
    now: datetime = Depends(get_clock),
):
    """Send one renewal reminder to a member, whatever their renewal date."""
    user = await get_user_or_404(db, member_id)
    if user.membership is None:
        raise MembershipMissingError(user.id)

    notifier = RenewalNotifier(
        SqlMembershipRepository(db), mailer, recipient_lookup(db),
        club_name=settings.club_name, committee_email=settings.committee_email,
    )
    membership = to_record(user.membership)
    await notifier.notify(membership, Recipient(user.email, user.name), now)
    audit.record(
        identity.user_id, AuditAction.RENEWAL_REMINDER_SENT,
        TargetKind.MEMBERSHIP, membership.id, {"recipient": user.email},
    )
    return {"success": True, "message": f"Rappel envoyé à {user.email}"}


# ─── Lifecycle events ───────────────────────────────────────────

@router.post("/{member_id}/payments", response_model=MemberResponse)
async def confirm_payment(
    member_id: str,
    body: PaymentConfirmation,
    identity: Identity = Depends(require_action(Action.CONFIRM_PAYMENT)),
    db: AsyncSession = Depends(get_db),
    service: MembershipService = Depends(get_membership_service),
    now: datetime = Depends(get_clock),
):
    user = await get_user_or_404(db, member_id)
    await service.apply(
        identity, user.id, PaymentConfirmed(body.amount),
        AuditAction.MEMBERSHIP_PAYMENT_CONFIRMED, now,
    )
    await reload_membership(db, user)
    return member_view(user, now)


@router.post("/{member_id}/suspend", response_model=MemberResponse)
async def suspend_membership(
    member_id: str,
    identity: Identity = Depends(require_action(Action.SUSPEND_MEMBERSHIP)),
    db: AsyncSession = Depends(get_db),
    service: MembershipService = Depends(get_membership_service),
    now: datetime = Depends(get_clock),
):
    user = await get_user_or_404(db, member_id)
    await service.apply(
        identity, user.id, AdminSuspend(), AuditAction.MEMBERSHIP_SUSPENDED, now,
    )
    await reload_membership(db, user)
    return member_view(user, now)


@router.post("/{member_id}/reactivate", response_model=MemberResponse)
async def reactivate_membership(
    member_id: str,
    identity: Identity = Depends(require_action(Action.REACTIVATE_MEMBERSHIP)),
    db: AsyncSession = Depends(get_db),
    service: MembershipService = Depends(get_membership_service),
    now: datetime = Depends(get_clock),
):
    user = await get_user_or_404(db, member_id)
    await service.apply(
        identity, user.id, AdminReactivate(), AuditAction.MEMBERSHIP_REACTIVATED, now,
    )
    await reload_membership(db, user)
    return member_view(user, now)
