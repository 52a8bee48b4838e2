"""Renewal Selection — which memberships are due for a reminder, and what to tell them.

Invariants:
    - due_for_reminder is a pure query: effective ACTIVE and renewal_date in [now, now + window]
    - Records already past their renewal date are excluded (they read as EXPIRED)
    - compose_reminder never touches IO; sending is the notifier's job
"""

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Iterable

from app.core.domain_types import MembershipStatus
from app.core.membership import MembershipRecord, effective_status

FUTURE_RENEWAL_SUBJECT = "Rappel de renouvellement {club}"
DUE_RENEWAL_SUBJECT = "Votre cotisation {club} est à renouveler"


@dataclass(frozen=True)
class ReminderMessage:
    to: str
    subject: str
    body: str


def due_for_reminder(
    memberships: Iterable[MembershipRecord], now: datetime, window_days: int,
) -> list[MembershipRecord]:
    """Memberships whose renewal falls inside the upcoming window."""
    horizon = now + timedelta(days=window_days)
    return [
        m for m in memberships
        if effective_status(m, now) is MembershipStatus.ACTIVE
        and m.renewal_date is not None
        and now <= m.renewal_date <= horizon
    ]


def days_until_renewal(membership: MembershipRecord, now: datetime) -> int:
    if membership.renewal_date is None:
        return 0
    seconds = (membership.renewal_date - now).total_seconds()
    return math.ceil(seconds / 86_400)


def compose_reminder(
    membership: MembershipRecord,
    email: str,
    name: str | None,
    now: datetime,
    club_name: str = "LADTC",
    committee_email: str = "bureau@ladtc.be",
) -> ReminderMessage:
    """Build the French renewal reminder for one member."""
    greeting = f"Bonjour {name or email},"
    amount = f"Montant annuel : {membership.amount:g} EUR"
    signature = f"Cordialement,\nL'équipe {club_name}"

    if days_until_renewal(membership, now) > 0:
        renewal = membership.renewal_date.strftime("%d/%m/%Y")
        subject = FUTURE_RENEWAL_SUBJECT.format(club=club_name)
        body = (
            f"{greeting}\n\n"
            f"Votre cotisation {club_name} expire le {renewal}.\n"
            f"{amount}\n\n"
            f"Pour renouveler, veuillez contacter {committee_email} "
            f"ou visiter votre espace membre.\n\n"
            f"{signature}"
        )
    else:
        subject = DUE_RENEWAL_SUBJECT.format(club=club_name)
        body = (
            f"{greeting}\n\n"
            f"Votre cotisation {club_name} est à renouveler aujourd'hui.\n"
            f"{amount}\n\n"
            f"Veuillez contacter {committee_email} pour renouveler.\n\n"
            f"{signature}"
        )
    return ReminderMessage(to=email, subject=subject, body=body)
