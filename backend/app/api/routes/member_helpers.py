"""Member view helpers — shared lookups and response builders for member routes.

Invariants:
    - Membership statuses in responses are effective statuses as of `now`
    - get_user_or_404 raises ResourceNotFoundError (404), never returns None
"""

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.errors import ResourceNotFoundError
from app.core.membership import effective_status
from app.infrastructure.repositories import to_record
from app.models.membership import Membership
from app.models.user import User
from app.schemas.member import MemberResponse, MembershipResponse, UserSummary
from app.services.renewal_notifier import Recipient


async def get_user_or_404(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise ResourceNotFoundError("Membre", user_id)
    return user


async def reload_membership(db: AsyncSession, user: User) -> None:
    """Pick up a membership row written through the repository."""
    await db.refresh(user, attribute_names=["membership"])


def membership_view(row: Membership | None, now: datetime) -> MembershipResponse | None:
    if row is None:
        return None
    record = to_record(row)
    return MembershipResponse(
        id=record.id,
        user_id=record.user_id,
        status=effective_status(record, now),
        amount=record.amount,
        renewal_date=record.renewal_date,
        paid_at=record.paid_at,
        joined_at=record.joined_at,
        notes=record.notes,
        phone=row.phone,
        emergency_contact=row.emergency_contact,
        emergency_contact_phone=row.emergency_contact_phone,
    )


def user_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        name=user.name,
        email=user.email,
        role=user.role,
        committee_role=user.committee_role,
        image=user.image,
        created_at=user.created_at,
    )


def member_view(user: User, now: datetime) -> MemberResponse:
    return MemberResponse(
        user=user_summary(user), membership=membership_view(user.membership, now),
    )


def recipient_lookup(db: AsyncSession):
    """Async user_id → Recipient resolver for the renewal notifier."""

    async def _lookup(user_id: str) -> Recipient | None:
        result = await db.execute(select(User).where(User.id == user_id))
        user = result.scalar_one_or_none()
        if user is None or not user.email:
            return None
        return Recipient(email=user.email, name=user.name)

    return _lookup
