"""Membership Service — persistence and audit around the state machine."""

from datetime import datetime, timezone

import pytest

from app.core.domain_types import AuditAction, MembershipId, MembershipStatus, UserId
from app.core.errors import InvalidPaymentError, MembershipMissingError
from app.core.identity import Identity
from app.core.membership import (
    AdminReactivate, AdminSuspend, MembershipRecord, PaymentConfirmed,
)
from app.services.membership_service import MembershipService

NOW = datetime(2025, 1, 2, 12, tzinfo=timezone.utc)
ACTOR = Identity(user_id="admin-1")


class MemoryRepository:
    def __init__(self, records=()):
        self.records = {r.user_id: r for r in records}
        self.saves = 0

    async def get_by_user(self, user_id):
        return self.records.get(user_id)

    async def list_all(self):
        return list(self.records.values())

    async def save(self, record):
        self.saves += 1
        self.records[record.user_id] = record
        return record


class RecordingAudit:
    def __init__(self):
        self.calls = []

    def record(self, actor_id, action, target_kind=None, target_id=None, diff=None):
        self.calls.append((actor_id, action, target_id, diff))


def _record(status, renewal):
    created = datetime(2024, 1, 1, tzinfo=timezone.utc)
    return MembershipRecord(
        id=MembershipId("m-1"), user_id=UserId("u-1"), status=status, amount=50.0,
        renewal_date=renewal, joined_at=created, created_at=created, updated_at=created,
    )


@pytest.fixture
def audit():
    return RecordingAudit()


async def test_payment_on_expired_member_saves_and_audits(audit):
    repo = MemoryRepository([
        _record(MembershipStatus.ACTIVE, datetime(2025, 1, 1, 12, tzinfo=timezone.utc)),
    ])
    service = MembershipService(repo, audit)

    updated = await service.apply(
        ACTOR, UserId("u-1"), PaymentConfirmed(50.0),
        AuditAction.MEMBERSHIP_PAYMENT_CONFIRMED, NOW,
    )

    assert updated.status is MembershipStatus.ACTIVE
    assert updated.renewal_date == datetime(2026, 1, 2, 12, tzinfo=timezone.utc)
    assert repo.saves == 1
    [(actor, action, target, diff)] = audit.calls
    assert actor == "admin-1"
    assert action is AuditAction.MEMBERSHIP_PAYMENT_CONFIRMED
    assert target == "m-1"
    assert diff["previousStatus"] == "EXPIRED"
    assert diff["newStatus"] == "ACTIVE"


async def test_payment_creates_missing_membership(audit):
    repo = MemoryRepository()
    service = MembershipService(repo, audit)
    updated = await service.apply(
        ACTOR, UserId("u-9"), PaymentConfirmed(30.0),
        AuditAction.MEMBERSHIP_PAYMENT_CONFIRMED, NOW,
    )
    assert updated.status is MembershipStatus.ACTIVE
    assert repo.records["u-9"].amount == 30.0
    assert audit.calls[0][3]["previousStatus"] is None


async def test_invalid_payment_writes_nothing(audit):
    repo = MemoryRepository([_record(MembershipStatus.PENDING, None)])
    service = MembershipService(repo, audit)
    with pytest.raises(InvalidPaymentError):
        await service.apply(
            ACTOR, UserId("u-1"), PaymentConfirmed(0),
            AuditAction.MEMBERSHIP_PAYMENT_CONFIRMED, NOW,
        )
    assert repo.saves == 0
    assert audit.calls == []
    assert repo.records["u-1"].status is MembershipStatus.PENDING


async def test_suspend_without_membership_is_missing(audit):
    service = MembershipService(MemoryRepository(), audit)
    with pytest.raises(MembershipMissingError):
        await service.apply(
            ACTOR, UserId("u-1"), AdminSuspend(), AuditAction.MEMBERSHIP_SUSPENDED, NOW,
        )


async def test_noop_transition_skips_save_and_audit(audit):
    repo = MemoryRepository([
        _record(MembershipStatus.ACTIVE, datetime(2026, 1, 1, tzinfo=timezone.utc)),
    ])
    service = MembershipService(repo, audit)
    await service.apply(
        ACTOR, UserId("u-1"), AdminReactivate(), AuditAction.MEMBERSHIP_REACTIVATED, NOW,
    )
    assert repo.saves == 0
    assert audit.calls == []


async def test_update_fields_upserts_and_audits(audit):
    repo = MemoryRepository()
    service = MembershipService(repo, audit)
    record = await service.update_fields(
        ACTOR, UserId("u-3"), NOW,
        status=MembershipStatus.ACTIVE,
        renewal_date=datetime(2026, 1, 1, tzinfo=timezone.utc),
        amount=75.0,
    )
    assert record.status is MembershipStatus.ACTIVE
    assert audit.calls[0][1] is AuditAction.MEMBERSHIP_UPDATED


async def test_get_returns_effective_status(audit):
    repo = MemoryRepository([
        _record(MembershipStatus.ACTIVE, datetime(2024, 12, 1, tzinfo=timezone.utc)),
    ])
    record = await MembershipService(repo, audit).get(UserId("u-1"), NOW)
    assert record.status is MembershipStatus.EXPIRED
