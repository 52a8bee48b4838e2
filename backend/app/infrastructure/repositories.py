"""SQLAlchemy Repositories — shell implementations of the core boundary protocols.

Invariants:
    - Datetimes leave this module timezone-aware (UTC); SQLite returns naive values
    - SqlSessionStore performs exactly one SELECT per lookup and maps every
      storage failure to SessionStoreUnavailableError
    - SqlMembershipRepository.save is a single INSERT or UPDATE keyed by user_id
    - SqlAuditLogRepository only inserts
"""

import logging
from datetime import datetime, timezone
from typing import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import MembershipId, MembershipStatus, UserId
from app.core.errors import DatabaseError, SessionStoreUnavailableError
from app.core.membership import MembershipRecord
from app.core.repository_protocols import AuditEntry, SessionRecord
from app.models.activity_log import ActivityLog
from app.models.auth_session import AuthSession
from app.models.membership import Membership

logger = logging.getLogger(__name__)


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes coming back from the driver."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_status(raw: str | None) -> MembershipStatus:
    """Stored status string → enum; unknown values read as INACTIVE (no dues)."""
    try:
        return MembershipStatus(raw)
    except ValueError:
        logger.warning(f"Unknown membership status in storage: {raw!r}")
        return MembershipStatus.INACTIVE


def to_record(row: Membership) -> MembershipRecord:
    return MembershipRecord(
        id=MembershipId(row.id),
        user_id=UserId(row.user_id),
        status=parse_status(row.status),
        amount=float(row.amount or 0.0),
        renewal_date=as_utc(row.renewal_date),
        joined_at=as_utc(row.joined_at),
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
        paid_at=as_utc(row.paid_at),
        notes=row.notes,
    )


def apply_record(row: Membership, record: MembershipRecord) -> None:
    """Copy lifecycle fields of a record onto its ORM row."""
    row.status = record.status.value
    row.amount = record.amount
    row.renewal_date = record.renewal_date
    row.paid_at = record.paid_at
    row.joined_at = record.joined_at
    row.notes = record.notes
    row.updated_at = record.updated_at


# ─── Sessions ────────────────────────────────────────────────────

class SqlSessionStore:
    """Session lookup against auth_sessions joined with users."""

    def __init__(self, session_factory: Callable | None):
        # session_factory: zero-arg callable returning an async context manager
        self._session_factory = session_factory

    async def lookup(self, token: str) -> SessionRecord | None:
        if self._session_factory is None:
            raise SessionStoreUnavailableError("database not initialized")
        try:
            async with self._session_factory() as db:
                result = await db.execute(
                    select(AuthSession).where(AuthSession.token == token),
                )
                row = result.scalar_one_or_none()
                if row is None:
                    return None
                return SessionRecord(
                    user_id=UserId(row.user_id),
                    expires_at=as_utc(row.expires_at),
                    role=row.user.role if row.user else None,
                    committee_role=row.user.committee_role if row.user else None,
                    name=row.user.name if row.user else None,
                    email=row.user.email if row.user else None,
                )
        except (SQLAlchemyError, DatabaseError, OSError) as e:
            raise SessionStoreUnavailableError(str(e)) from e


# ─── Memberships ─────────────────────────────────────────────────

class SqlMembershipRepository:
    """Dues records bound to the request's AsyncSession."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _get_row(self, user_id: str) -> Membership | None:
        result = await self.db.execute(
            select(Membership).where(Membership.user_id == user_id),
        )
        return result.scalar_one_or_none()

    async def get_by_user(self, user_id: UserId) -> MembershipRecord | None:
        row = await self._get_row(user_id)
        return to_record(row) if row else None

    async def list_all(self) -> list[MembershipRecord]:
        result = await self.db.execute(select(Membership))
        return [to_record(row) for row in result.scalars().all()]

    async def save(self, record: MembershipRecord) -> MembershipRecord:
        row = await self._get_row(record.user_id)
        if row is None:
            row = Membership(id=record.id, user_id=record.user_id)
            row.created_at = record.created_at
            self.db.add(row)
        apply_record(row, record)
        await self.db.commit()
        await self.db.refresh(row)
        return to_record(row)


# ─── Audit ───────────────────────────────────────────────────────

class SqlAuditLogRepository:
    """Append-only activity log writer using its own short-lived session."""

    def __init__(self, session_factory: Callable):
        self._session_factory = session_factory

    async def append(self, entry: AuditEntry) -> None:
        async with self._session_factory() as db:
            db.add(ActivityLog(
                user_id=entry.actor_id,
                action=entry.action,
                target=entry.target_kind,
                target_id=entry.target_id,
                changes=entry.changes,
                created_at=entry.created_at,
            ))
            await db.commit()
