"""Boundary Protocols — contracts between core and shell.

Invariants:
    - Core NEVER imports from shell — dependency arrows point inward only
    - All IO operations accessed through Protocol types
    - Implementations provided by shell via dependency injection

Design Decisions:
    - Protocol over ABC: structural subtyping, test fakes need no inheritance
    - Async in Protocol: implementations do IO; the pure functions that consume
      their results are never async themselves
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from app.core.domain_types import UserId
from app.core.membership import MembershipRecord


@dataclass(frozen=True)
class SessionRecord:
    """What the session store knows about a token: owner snapshot and expiry."""
    user_id: UserId
    expires_at: datetime
    role: str | None
    committee_role: str | None = None
    name: str | None = None
    email: str | None = None


@dataclass(frozen=True)
class AuditEntry:
    """One append-only activity log record."""
    actor_id: str
    action: str
    target_kind: str | None
    target_id: str | None
    changes: dict | None
    created_at: datetime


class SessionStore(Protocol):
    """Single-lookup session validation — raises SessionStoreUnavailableError on outage."""
    async def lookup(self, token: str) -> SessionRecord | None: ...


class MembershipRepository(Protocol):
    """Contract for dues record persistence — implemented by shell."""
    async def get_by_user(self, user_id: UserId) -> MembershipRecord | None: ...
    async def list_all(self) -> list[MembershipRecord]: ...
    async def save(self, record: MembershipRecord) -> MembershipRecord: ...


class AuditLogRepository(Protocol):
    """Contract for activity log persistence — implemented by shell."""
    async def append(self, entry: AuditEntry) -> None: ...


class Mailer(Protocol):
    """Outbound mail collaborator."""
    async def send(self, to: str, subject: str, body: str) -> None: ...
