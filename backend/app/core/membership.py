"""Membership State Machine — dues lifecycle as a pure function of record, event and time.

Invariants:
    - advance() never mutates its input; it returns a new MembershipRecord
    - Every event is evaluated against effective_status(record, now), so a stored
      ACTIVE past its renewal date behaves as EXPIRED without a sweep job
    - ACTIVE is only entered with renewal_date = now + period (never from a stale date)
    - PaymentConfirmed with an amount that is not a finite positive number raises
      InvalidPaymentError; the input is untouched
    - All other (state, event) pairs are defined and never raise

Transitions (on effective status):
    PaymentConfirmed   any                         → ACTIVE, renewal from now, amount recorded
    AdminSuspend       ACTIVE | PENDING | EXPIRED  → INACTIVE;  INACTIVE → no-op
    AdminReactivate    INACTIVE | EXPIRED | PENDING → ACTIVE, renewal from now;  ACTIVE → no-op
    TimeSweep          ACTIVE and now > renewal    → EXPIRED;  otherwise no-op

Design Decisions:
    - Lazy recomputation over a scheduled sweep: no hidden background state
    - Calendar-month arithmetic for the period, clamped to the month's last day
      (2024-02-29 + 12 months = 2025-02-28)
"""

import calendar
import math
from dataclasses import dataclass, replace
from datetime import datetime

from app.core.domain_types import MembershipId, MembershipStatus, UserId
from app.core.errors import InvalidPaymentError, InvalidRenewalDateError

DEFAULT_PERIOD_MONTHS = 12


@dataclass(frozen=True)
class MembershipRecord:
    """Snapshot of one member's dues record."""
    id: MembershipId
    user_id: UserId
    status: MembershipStatus
    amount: float
    renewal_date: datetime | None
    joined_at: datetime
    created_at: datetime
    updated_at: datetime
    paid_at: datetime | None = None
    notes: str | None = None


# ─── Events ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class PaymentConfirmed:
    amount: float


@dataclass(frozen=True)
class AdminSuspend:
    pass


@dataclass(frozen=True)
class AdminReactivate:
    pass


@dataclass(frozen=True)
class TimeSweep:
    pass


MembershipEvent = PaymentConfirmed | AdminSuspend | AdminReactivate | TimeSweep


# ─── Time ────────────────────────────────────────────────────────

def add_months(start: datetime, months: int) -> datetime:
    """Add calendar months, keeping the day within the target month."""
    year = start.year + (start.month - 1 + months) // 12
    month = (start.month - 1 + months) % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    return start.replace(year=year, month=month, day=min(start.day, last_day))


def is_past_renewal(record: MembershipRecord, now: datetime) -> bool:
    """True when the renewal date has passed (strictly)."""
    if record.renewal_date is None:
        return True
    return now > record.renewal_date


def effective_status(record: MembershipRecord | None, now: datetime) -> MembershipStatus | None:
    """Status as of `now`; None when the identity has no dues record."""
    if record is None:
        return None
    if record.status is MembershipStatus.ACTIVE and is_past_renewal(record, now):
        return MembershipStatus.EXPIRED
    return record.status


def has_active_dues(record: MembershipRecord | None, now: datetime) -> bool:
    return effective_status(record, now) is MembershipStatus.ACTIVE


def with_effective_status(record: MembershipRecord, now: datetime) -> MembershipRecord:
    """Read-time view: the record with its status recomputed against `now`."""
    status = effective_status(record, now)
    if status is record.status:
        return record
    return replace(record, status=status)


def new_membership(
    membership_id: MembershipId,
    user_id: UserId,
    now: datetime,
    status: MembershipStatus = MembershipStatus.PENDING,
    amount: float = 0.0,
    renewal_date: datetime | None = None,
    paid_at: datetime | None = None,
    notes: str | None = None,
) -> MembershipRecord:
    """Fresh dues record; ACTIVE requires a renewal date after `now`."""
    record = MembershipRecord(
        id=membership_id, user_id=user_id, status=status, amount=amount,
        renewal_date=renewal_date, joined_at=now, created_at=now,
        updated_at=now, paid_at=paid_at, notes=notes,
    )
    check_active_renewal(record, now)
    return record


def check_active_renewal(record: MembershipRecord, now: datetime) -> None:
    if record.status is MembershipStatus.ACTIVE and is_past_renewal(record, now):
        raise InvalidRenewalDateError()


def edit(record: MembershipRecord, now: datetime, **changes) -> MembershipRecord:
    """Administrative field edit (status, renewal_date, paid_at, amount, notes)."""
    updated = replace(record, updated_at=now, **changes)
    check_active_renewal(updated, now)
    return updated


# ─── Transitions ─────────────────────────────────────────────────

def _activate(
    record: MembershipRecord, now: datetime, period_months: int, **changes,
) -> MembershipRecord:
    return replace(
        record,
        status=MembershipStatus.ACTIVE,
        renewal_date=add_months(now, period_months),
        updated_at=now,
        **changes,
    )


def advance(
    record: MembershipRecord,
    event: MembershipEvent,
    now: datetime,
    period_months: int = DEFAULT_PERIOD_MONTHS,
) -> MembershipRecord:
    """Apply one lifecycle event and return the resulting record."""
    current = with_effective_status(record, now)

    if isinstance(event, PaymentConfirmed):
        if event.amount is None or not math.isfinite(event.amount) or event.amount <= 0:
            raise InvalidPaymentError(event.amount)
        return _activate(
            current, now, period_months, amount=event.amount, paid_at=now,
        )

    if isinstance(event, AdminSuspend):
        if current.status is MembershipStatus.INACTIVE:
            return current
        return replace(current, status=MembershipStatus.INACTIVE, updated_at=now)

    if isinstance(event, AdminReactivate):
        if current.status is MembershipStatus.ACTIVE:
            return current
        return _activate(current, now, period_months)

    if isinstance(event, TimeSweep):
        # with_effective_status already performed the ACTIVE → EXPIRED step
        if current.status is not record.status:
            return replace(current, updated_at=now)
        return current

    raise TypeError(f"Unknown membership event: {event!r}")
