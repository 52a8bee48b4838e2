"""Role Policy — explicit permitted-role sets per action, with an owner escape hatch.

Invariants:
    - Requirements are set-membership tests, never ordinal role comparisons
    - is_owner is evaluated BEFORE role membership: self-service is never
      blocked by an insufficient role
    - Anonymous callers are denied every non-public requirement, including
      ownership (an anonymous caller owns nothing)
    - PUBLIC_ACCESS allows everyone; AUTHENTICATED allows any resolved Identity

Design Decisions:
    - Requirement is a frozen dataclass (roles | public | authenticated) so the
      route table and handlers share one vocabulary
    - Action → Requirement table is a module constant (MappingProxyType): read-only
"""

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType

from app.core.domain_types import Role
from app.core.identity import Identity, Principal


class Decision(str, Enum):
    ALLOWED = "allowed"
    DENIED = "denied"


@dataclass(frozen=True)
class Requirement:
    """Who may pass: everyone, any authenticated caller, or a role set."""
    roles: frozenset[Role] = frozenset()
    public: bool = False
    authenticated: bool = False

    def describe(self) -> str:
        if self.public:
            return "public"
        if self.authenticated:
            return "authenticated"
        return "|".join(sorted(r.value for r in self.roles))


PUBLIC_ACCESS = Requirement(public=True)
AUTHENTICATED = Requirement(authenticated=True)
STAFF_ROLES = Requirement(roles=frozenset({Role.COMMITTEE, Role.ADMIN}))
ADMIN_ONLY = Requirement(roles=frozenset({Role.ADMIN}))


class Action(str, Enum):
    """Privileged actions gated by the policy."""
    VIEW_PUBLIC_CONTENT = "view_public_content"
    VIEW_OWN_PROFILE = "view_own_profile"
    UPDATE_OWN_PROFILE = "update_own_profile"
    VIEW_DASHBOARD = "view_dashboard"
    VIEW_STATISTICS = "view_statistics"
    LIST_MEMBERS = "list_members"
    VIEW_MEMBER = "view_member"
    CREATE_MEMBER = "create_member"
    UPDATE_MEMBERSHIP = "update_membership"
    CONFIRM_PAYMENT = "confirm_payment"
    SUSPEND_MEMBERSHIP = "suspend_membership"
    REACTIVATE_MEMBERSHIP = "reactivate_membership"
    SEND_RENEWAL_REMINDER = "send_renewal_reminder"
    VIEW_ACTIVITY_LOGS = "view_activity_logs"
    LIST_USERS = "list_users"
    UPDATE_USER_ROLE = "update_user_role"
    UPDATE_USER_IMAGE = "update_user_image"


ACTION_REQUIREMENTS: MappingProxyType[Action, Requirement] = MappingProxyType({
    Action.VIEW_PUBLIC_CONTENT: PUBLIC_ACCESS,
    Action.VIEW_OWN_PROFILE: AUTHENTICATED,
    Action.UPDATE_OWN_PROFILE: AUTHENTICATED,
    Action.VIEW_DASHBOARD: STAFF_ROLES,
    Action.VIEW_STATISTICS: STAFF_ROLES,
    Action.LIST_MEMBERS: STAFF_ROLES,
    Action.VIEW_MEMBER: STAFF_ROLES,
    Action.CREATE_MEMBER: STAFF_ROLES,
    Action.UPDATE_MEMBERSHIP: STAFF_ROLES,
    Action.CONFIRM_PAYMENT: STAFF_ROLES,
    Action.SUSPEND_MEMBERSHIP: STAFF_ROLES,
    Action.REACTIVATE_MEMBERSHIP: STAFF_ROLES,
    Action.SEND_RENEWAL_REMINDER: STAFF_ROLES,
    Action.VIEW_ACTIVITY_LOGS: STAFF_ROLES,
    Action.LIST_USERS: ADMIN_ONLY,
    Action.UPDATE_USER_ROLE: ADMIN_ONLY,
    Action.UPDATE_USER_IMAGE: ADMIN_ONLY,
})


def requirement_for(action: Action) -> Requirement:
    return ACTION_REQUIREMENTS[action]


def is_owner(identity: Principal, resource_owner_id: str | None) -> bool:
    """True when an authenticated caller acts on a resource they own."""
    if not isinstance(identity, Identity) or not resource_owner_id:
        return False
    return identity.user_id == resource_owner_id


def has_role(identity: Principal, requirement: Requirement) -> bool:
    """Role-set membership only; ownership is not considered."""
    if requirement.public:
        return True
    if not isinstance(identity, Identity):
        return False
    if requirement.authenticated:
        return True
    return identity.role in requirement.roles


def authorize(
    identity: Principal,
    requirement: Requirement,
    resource_owner_id: str | None = None,
) -> Decision:
    """Owner check first, then role-set membership."""
    if requirement.public:
        return Decision.ALLOWED
    if is_owner(identity, resource_owner_id):
        return Decision.ALLOWED
    if has_role(identity, requirement):
        return Decision.ALLOWED
    return Decision.DENIED


def authorize_action(
    identity: Principal, action: Action, resource_owner_id: str | None = None,
) -> Decision:
    return authorize(identity, requirement_for(action), resource_owner_id)
