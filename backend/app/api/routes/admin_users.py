"""Admin User Routes — role and avatar administration.

Invariants:
    - Listing users and changing roles require ADMIN
    - An avatar may be changed by an ADMIN or by the user themself (owner check first)
    - committee_role is cleared whenever the new role is not COMMITTEE
    - Every successful change is audited with its before/after values
"""

import logging
import math
from datetime import datetime

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.domain_types import AuditAction, Role, TargetKind
from app.core.errors import ResourceNotFoundError
from app.core.identity import Identity, Principal, parse_role
from app.core.role_policy import Action
from app.api.dependencies import (
    ensure_allowed, get_audit_recorder, get_clock, get_identity, require_action,
)
from app.infrastructure.database import get_db
from app.infrastructure.repositories import as_utc
from app.models.user import User
from app.schemas.user import ImageUpdate, RoleUpdate, UserPage, UserResponse
from app.services.audit_recorder import AuditRecorder

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/admin/users", tags=["admin"])

PAGE_SIZE = 20


def user_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        name=user.name,
        email=user.email,
        role=parse_role(user.role),
        committee_role=user.committee_role,
        image=user.image,
        created_at=as_utc(user.created_at),
        updated_at=as_utc(user.updated_at),
    )


async def _get_user_or_404(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise ResourceNotFoundError("Utilisateur", user_id)
    return user


@router.get("", response_model=UserPage)
async def list_users(
    page: int = Query(1, ge=1),
    _: Identity = Depends(require_action(Action.LIST_USERS)),
    db: AsyncSession = Depends(get_db),
):
    total = await db.scalar(select(func.count()).select_from(User)) or 0
    result = await db.execute(
        select(User)
        .order_by(User.created_at.desc())
        .offset((page - 1) * PAGE_SIZE)
        .limit(PAGE_SIZE),
    )
    return UserPage(
        users=[user_response(u) for u in result.scalars().all()],
        total=total,
        pages=math.ceil(total / PAGE_SIZE),
        page=page,
    )


@router.patch("/{user_id}/role", response_model=UserResponse)
async def update_role(
    user_id: str,
    body: RoleUpdate,
    identity: Identity = Depends(require_action(Action.UPDATE_USER_ROLE)),
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    now: datetime = Depends(get_clock),
):
    user = await _get_user_or_404(db, user_id)
    previous_role, previous_committee_role = user.role, user.committee_role
    committee_role = None
    if body.role is Role.COMMITTEE:
        committee_role = body.committee_role or None

    user.role = body.role.value
    user.committee_role = committee_role
    user.updated_at = now
    await db.commit()
    await db.refresh(user)

    audit.record(
        identity.user_id, AuditAction.USER_ROLE_UPDATED, TargetKind.USER, user.id,
        {
            "previousRole": previous_role,
            "newRole": body.role.value,
            "previousCommitteeRole": previous_committee_role,
            "newCommitteeRole": committee_role,
        },
    )
    return user_response(user)


@router.patch("/{user_id}/image", response_model=UserResponse)
async def update_image(
    user_id: str,
    body: ImageUpdate,
    identity: Principal = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    now: datetime = Depends(get_clock),
):
    """Set or clear a user's avatar."""
    actor = ensure_allowed(identity, Action.UPDATE_USER_IMAGE, user_id)
    user = await _get_user_or_404(db, user_id)
    previous_image = user.image

    user.image = body.image
    user.updated_at = now
    await db.commit()
    await db.refresh(user)

    audit.record(
        actor.user_id, AuditAction.USER_IMAGE_UPDATED, TargetKind.USER, user.id,
        {"previousImage": previous_image, "newImage": body.image},
    )
    return user_response(user)
