"""API Dependencies — FastAPI providers for identity, clock, audit and services.

Invariants:
    - get_identity never raises; require_* dependencies raise the typed
      UnauthenticatedError / ForbiddenError handled by the global error handlers
    - Authorization inside handlers goes through role_policy (owner check first)
    - The clock is a dependency so handlers and tests agree on `now`
"""

from datetime import datetime, timezone

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.core.errors import ForbiddenError, UnauthenticatedError
from app.core.identity import ANONYMOUS, Identity, Principal
from app.core.role_policy import Action, Decision, authorize_action
from app.infrastructure.database import get_db
from app.infrastructure.repositories import SqlMembershipRepository
from app.services.audit_recorder import AuditRecorder
from app.services.membership_service import MembershipService


def get_identity(request: Request) -> Principal:
    """Principal resolved by the route guard for this request."""
    return getattr(request.state, "identity", ANONYMOUS)


def require_identity(identity: Principal = Depends(get_identity)) -> Identity:
    if not isinstance(identity, Identity):
        raise UnauthenticatedError()
    return identity


def ensure_allowed(
    identity: Principal, action: Action, resource_owner_id: str | None = None,
) -> Identity:
    """Raise unless the caller may perform `action` (owners always may)."""
    if not isinstance(identity, Identity):
        raise UnauthenticatedError()
    if authorize_action(identity, action, resource_owner_id) is Decision.DENIED:
        raise ForbiddenError()
    return identity


def require_action(action: Action):
    """Dependency factory for role-only checks (no resource owner involved)."""

    def _check(identity: Principal = Depends(get_identity)) -> Identity:
        return ensure_allowed(identity, action)

    return _check


def get_clock() -> datetime:
    """Current UTC time."""
    return datetime.now(timezone.utc)


def get_audit_recorder(request: Request) -> AuditRecorder:
    return request.app.state.audit_recorder


def get_membership_service(
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    settings: Settings = Depends(get_settings),
) -> MembershipService:
    return MembershipService(
        SqlMembershipRepository(db), audit, settings.membership_period_months,
    )
