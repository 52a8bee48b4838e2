"""Membership KPIs — pure dashboard statistics computed against `now`."""

from datetime import datetime, timedelta
from typing import Iterable

from app.core.domain_types import MembershipStatus
from app.core.membership import MembershipRecord, effective_status
from app.core.renewals import due_for_reminder

UPCOMING_RENEWAL_DAYS = 30
NEW_MEMBER_DAYS = 7


def count_by_status(
    memberships: Iterable[MembershipRecord], now: datetime,
) -> dict[str, int]:
    counts = {status.value: 0 for status in MembershipStatus}
    for m in memberships:
        counts[effective_status(m, now).value] += 1
    return counts


def compute_member_stats(
    memberships: list[MembershipRecord],
    user_created_at: Iterable[datetime],
    now: datetime,
    window_days: int = UPCOMING_RENEWAL_DAYS,
) -> dict:
    """Breakdown, active revenue, upcoming renewals and weekly sign-ups."""
    counts = count_by_status(memberships, now)
    revenue = sum(
        m.amount for m in memberships
        if effective_status(m, now) is MembershipStatus.ACTIVE
    )
    week_ago = now - timedelta(days=NEW_MEMBER_DAYS)
    return {
        "total": len(memberships),
        "active": counts[MembershipStatus.ACTIVE.value],
        "pending": counts[MembershipStatus.PENDING.value],
        "inactive": counts[MembershipStatus.INACTIVE.value],
        "expired": counts[MembershipStatus.EXPIRED.value],
        "revenue": revenue,
        "upcoming_renewals": len(due_for_reminder(memberships, now, window_days)),
        "new_this_week": sum(1 for created in user_created_at if created >= week_ago),
    }


def compute_dashboard_stats(
    memberships: list[MembershipRecord],
    user_created_at: list[datetime],
    now: datetime,
    window_days: int = UPCOMING_RENEWAL_DAYS,
) -> dict:
    week_ago = now - timedelta(days=NEW_MEMBER_DAYS)
    return {
        "total_members": len(user_created_at),
        "active_members": sum(
            1 for m in memberships
            if effective_status(m, now) is MembershipStatus.ACTIVE
        ),
        "pending_renewals": len(due_for_reminder(memberships, now, window_days)),
        "recent_registrations": sum(1 for c in user_created_at if c >= week_ago),
    }
