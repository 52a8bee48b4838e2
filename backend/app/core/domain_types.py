"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, MembershipId wrap the string ids used by the auth store
    - Role and MembershipStatus are closed enumerations
    - All valid states encoded as Enums — no raw string matching

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON without custom encoders
"""

from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", str)
MembershipId = NewType("MembershipId", str)


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """Club roles. Not exposed as a linear hierarchy: policy uses explicit sets."""
    MEMBER = "MEMBER"
    COACH = "COACH"
    COMMITTEE = "COMMITTEE"
    ADMIN = "ADMIN"


class MembershipStatus(str, Enum):
    """Dues lifecycle states — maps to the memberships `status` column."""
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"


class RouteKind(str, Enum):
    """Browser-navigable page vs programmatic endpoint."""
    UI = "ui"
    API = "api"


class AuditAction(str, Enum):
    """Closed vocabulary of audited privileged mutations."""
    USER_ROLE_UPDATED = "USER_ROLE_UPDATED"
    USER_IMAGE_UPDATED = "USER_IMAGE_UPDATED"
    MEMBER_CREATED = "MEMBER_CREATED"
    MEMBERSHIP_UPDATED = "MEMBERSHIP_UPDATED"
    MEMBERSHIP_PAYMENT_CONFIRMED = "MEMBERSHIP_PAYMENT_CONFIRMED"
    MEMBERSHIP_SUSPENDED = "MEMBERSHIP_SUSPENDED"
    MEMBERSHIP_REACTIVATED = "MEMBERSHIP_REACTIVATED"
    RENEWAL_REMINDER_SENT = "RENEWAL_REMINDER_SENT"


class TargetKind(str, Enum):
    """Entity kinds an audit entry can point at."""
    USER = "user"
    MEMBERSHIP = "membership"
