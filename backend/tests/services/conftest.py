"""Service test fixtures — async DB, audit recorder, fixed clock and FastAPI test client.

Invariants:
    - Every test gets a fresh SQLite database
    - get_db, get_clock, get_audit_recorder and get_mailer are overridden for route tests
    - db_manager is patched so the route guard's session store reads the test DB
    - Seed helpers create users, sessions and memberships directly through the ORM

Design Decisions:
    - File-backed SQLite (tmp_path) rather than :memory: so the audit worker and
      the request each get their own connection
    - Requests authenticate with "Authorization: Bearer <token>"; cookie transport
      is covered separately in the guard tests
"""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_audit_recorder, get_clock
from app.core.domain_types import Role
from app.db.base import Base
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.infrastructure.mailer import get_mailer
from app.infrastructure.repositories import SqlAuditLogRepository
from app.models.auth_session import AuthSession
from app.models.membership import Membership
from app.models.user import User
from app.services.audit_recorder import AuditRecorder
import app.infrastructure.database as db_module
from app.main import app

NOW = datetime(2025, 6, 1, 12, tzinfo=timezone.utc)


class FakeMailer:
    """Records messages instead of sending them."""

    def __init__(self, fail_for: set[str] | None = None):
        self.sent: list[dict] = []
        self.fail_for = fail_for or set()

    async def send(self, to: str, subject: str, body: str) -> None:
        if to in self.fail_for:
            raise ConnectionError(f"SMTP refused {to}")
        self.sent.append({"to": to, "subject": subject, "body": body})


@pytest.fixture
async def test_engine(tmp_path):
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'club.db'}", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
async def audit_recorder(test_session_factory):
    recorder = AuditRecorder(SqlAuditLogRepository(test_session_factory))
    yield recorder
    await recorder.stop()


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
async def client(test_engine, test_session_factory, audit_recorder, mailer):
    """FastAPI test client with DB, clock, audit and mail dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: NOW
    app.dependency_overrides[get_audit_recorder] = lambda: audit_recorder
    app.dependency_overrides[get_mailer] = lambda: mailer

    # The route guard resolves sessions through db_manager directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


# ─── Seed helpers ───────────────────────────────────────────────

@pytest.fixture
def make_user(test_session_factory):
    async def _make(
        role: Role | str = Role.MEMBER,
        email: str | None = None,
        name: str = "Test Member",
        created_at: datetime | None = None,
        committee_role: str | None = None,
    ) -> User:
        async with test_session_factory() as db:
            user = User(
                name=name,
                email=email or f"{uuid.uuid4().hex[:8]}@ladtc.test",
                role=role.value if isinstance(role, Role) else role,
                committee_role=committee_role,
                created_at=created_at or NOW - timedelta(days=60),
                updated_at=created_at or NOW - timedelta(days=60),
            )
            db.add(user)
            await db.commit()
            await db.refresh(user)
            return user
    return _make


@pytest.fixture
def make_session(test_session_factory):
    async def _make(user: User, expires_at: datetime | None = None) -> str:
        token = uuid.uuid4().hex
        async with test_session_factory() as db:
            db.add(AuthSession(
                token=token,
                user_id=user.id,
                expires_at=expires_at or datetime.now(timezone.utc) + timedelta(days=1),
            ))
            await db.commit()
        return token
    return _make


@pytest.fixture
def make_membership(test_session_factory):
    async def _make(
        user: User,
        status: str = "ACTIVE",
        renewal_date: datetime | None = None,
        amount: float = 60.0,
        phone: str | None = None,
    ) -> Membership:
        async with test_session_factory() as db:
            row = Membership(
                user_id=user.id,
                status=status,
                amount=amount,
                renewal_date=renewal_date,
                joined_at=NOW - timedelta(days=300),
                phone=phone,
                created_at=NOW - timedelta(days=300),
                updated_at=NOW - timedelta(days=300),
            )
            db.add(row)
            await db.commit()
            await db.refresh(row)
            return row
    return _make


@pytest.fixture
def login(make_user, make_session):
    """Create a user with a live session; returns (user, auth headers)."""
    async def _login(role: Role = Role.MEMBER, **kwargs):
        user = await make_user(role=role, **kwargs)
        token = await make_session(user)
        return user, {"Authorization": f"Bearer {token}"}
    return _login
