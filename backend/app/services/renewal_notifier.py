"""Renewal Notifier — finds memberships due for renewal and sends reminders.

Invariants:
    - due() is a pure query over the repository snapshot (no side effect)
    - notify() sends exactly one message per call; repeated calls for the same
      membership in the same window send again (at-least-once, no dedup)
    - A mail failure for one member does not stop notify_due() for the others
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Awaitable, Callable

from app.core.membership import MembershipRecord
from app.core.renewals import compose_reminder, due_for_reminder
from app.core.repository_protocols import Mailer, MembershipRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Recipient:
    email: str
    name: str | None = None


class RenewalNotifier:
    """Reminder orchestration over the membership store and the mailer."""

    def __init__(
        self,
        memberships: MembershipRepository,
        mailer: Mailer,
        recipient_lookup: Callable[[str], Awaitable[Recipient | None]],
        club_name: str = "LADTC",
        committee_email: str = "bureau@ladtc.be",
    ):
        self.memberships = memberships
        self.mailer = mailer
        self.recipient_lookup = recipient_lookup
        self.club_name = club_name
        self.committee_email = committee_email

    async def due(self, now: datetime, window_days: int) -> list[MembershipRecord]:
        return due_for_reminder(await self.memberships.list_all(), now, window_days)

    async def notify(
        self, membership: MembershipRecord, recipient: Recipient, now: datetime,
    ) -> None:
        message = compose_reminder(
            membership, recipient.email, recipient.name, now,
            club_name=self.club_name, committee_email=self.committee_email,
        )
        await self.mailer.send(message.to, message.subject, message.body)
        logger.info(
            "Renewal reminder sent",
            extra={"user_id": membership.user_id, "recipient": recipient.email},
        )

    async def notify_due(self, now: datetime, window_days: int) -> list[MembershipRecord]:
        """Send a reminder to every due membership; returns those reminded."""
        reminded = []
        for membership in await self.due(now, window_days):
            recipient = await self.recipient_lookup(membership.user_id)
            if recipient is None:
                logger.warning(
                    "No recipient for due membership",
                    extra={"user_id": membership.user_id},
                )
                continue
            try:
                await self.notify(membership, recipient, now)
            except Exception as e:
                logger.error(
                    f"Renewal reminder failed: {e}",
                    extra={"user_id": membership.user_id},
                    exc_info=True,
                )
                continue
            reminded.append(membership)
        return reminded
