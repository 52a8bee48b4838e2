"""Session Resolver — credential → Identity | ANONYMOUS, with one store lookup.

Invariants:
    - Missing, blank or badly signed credential → ANONYMOUS without touching the store
    - Exactly one SessionStore.lookup per resolution
    - Unknown token and expired session both → ANONYMOUS (never an exception)
    - Store outage propagates as SessionStoreUnavailableError; callers must fail closed
    - The role is parsed here, once; invalid role strings become Role.MEMBER
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from app.core.credentials import unsign_token
from app.core.identity import ANONYMOUS, Identity, Principal, parse_role
from app.core.repository_protocols import SessionStore

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionResolver:
    """Validates session credentials against the session store."""

    def __init__(
        self,
        store: SessionStore,
        secret: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.store = store
        self.secret = secret
        self.clock = clock

    async def resolve(self, raw_credential: str | None) -> Principal:
        if not raw_credential or not raw_credential.strip():
            return ANONYMOUS
        token = unsign_token(raw_credential.strip(), self.secret)
        if token is None:
            logger.info("Rejected session credential with invalid signature")
            return ANONYMOUS

        record = await self.store.lookup(token)
        if record is None:
            return ANONYMOUS
        if record.expires_at <= self.clock():
            return ANONYMOUS

        role = parse_role(record.role)
        if record.role is not None and role.value != str(record.role).strip().upper():
            logger.warning(
                f"Unrecognized role {record.role!r}, treating as {role.value}",
                extra={"user_id": record.user_id},
            )
        return Identity(
            user_id=record.user_id,
            role=role,
            committee_role=record.committee_role,
            name=record.name,
            email=record.email,
        )
