"""Membership Service — load, advance, persist and audit dues records.

Invariants:
    - Lifecycle rules live in core/membership.py; this module only sequences IO around them
    - One repository save per effective change; no-op transitions neither write nor audit
    - Audit is recorded AFTER the save returns, through the non-raising AuditRecorder
    - Returned records always carry the effective status as of `now`
"""

import logging
import uuid
from datetime import datetime

from app.core.domain_types import AuditAction, MembershipId, TargetKind, UserId
from app.core.errors import MembershipMissingError
from app.core.identity import Identity
from app.core.membership import (
    DEFAULT_PERIOD_MONTHS,
    MembershipEvent,
    MembershipRecord,
    PaymentConfirmed,
    advance,
    edit,
    new_membership,
    with_effective_status,
)
from app.core.repository_protocols import MembershipRepository
from app.services.audit_recorder import AuditRecorder

logger = logging.getLogger(__name__)


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _diff(before: MembershipRecord | None, after: MembershipRecord) -> dict:
    return {
        "previousStatus": before.status.value if before else None,
        "newStatus": after.status.value,
        "previousRenewalDate": _iso(before.renewal_date) if before else None,
        "newRenewalDate": _iso(after.renewal_date),
        "previousAmount": before.amount if before else None,
        "newAmount": after.amount,
    }


class MembershipService:
    """Sequencing of membership mutations for request handlers."""

    def __init__(
        self,
        repository: MembershipRepository,
        audit: AuditRecorder,
        period_months: int = DEFAULT_PERIOD_MONTHS,
    ):
        self.repository = repository
        self.audit = audit
        self.period_months = period_months

    async def get(self, user_id: UserId, now: datetime) -> MembershipRecord | None:
        record = await self.repository.get_by_user(user_id)
        return with_effective_status(record, now) if record else None

    async def require(self, user_id: UserId, now: datetime) -> MembershipRecord:
        record = await self.get(user_id, now)
        if record is None:
            raise MembershipMissingError(user_id)
        return record

    async def apply(
        self,
        actor: Identity,
        user_id: UserId,
        event: MembershipEvent,
        action: AuditAction,
        now: datetime,
    ) -> MembershipRecord:
        """Run one lifecycle event. Payments create the dues record when absent."""
        stored = await self.repository.get_by_user(user_id)
        if stored is None:
            if not isinstance(event, PaymentConfirmed):
                raise MembershipMissingError(user_id)
            base = new_membership(MembershipId(str(uuid.uuid4())), user_id, now)
        else:
            base = stored

        updated = advance(base, event, now, self.period_months)
        if stored is not None and updated == with_effective_status(stored, now):
            logger.info(
                f"{type(event).__name__} was a no-op",
                extra={"user_id": user_id, "action": action.value},
            )
            return updated

        saved = await self.repository.save(updated)
        self.audit.record(
            actor.user_id, action, TargetKind.MEMBERSHIP, saved.id,
            _diff(with_effective_status(stored, now) if stored else None, saved),
        )
        return with_effective_status(saved, now)

    async def update_fields(
        self, actor: Identity, user_id: UserId, now: datetime, **changes,
    ) -> MembershipRecord:
        """Administrative upsert of dues fields."""
        stored = await self.repository.get_by_user(user_id)
        if stored is None:
            updated = new_membership(
                MembershipId(str(uuid.uuid4())), user_id, now, **changes,
            )
        else:
            updated = edit(stored, now, **changes)
        saved = await self.repository.save(updated)
        self.audit.record(
            actor.user_id, AuditAction.MEMBERSHIP_UPDATED, TargetKind.MEMBERSHIP,
            saved.id, _diff(stored, saved),
        )
        return with_effective_status(saved, now)
