"""Identity — the strongly-typed principal produced by the session resolver.

Invariants:
    - Identity.role is always a Role member; storage strings are parsed once,
      at the resolver boundary, by parse_role
    - Unknown, blank or non-string roles resolve to Role.MEMBER (least privilege)
    - ANONYMOUS is the single value representing "no authenticated caller"
"""

from dataclasses import dataclass

from app.core.domain_types import Role, UserId


@dataclass(frozen=True)
class Identity:
    """Authenticated principal snapshot for one request."""
    user_id: UserId
    role: Role = Role.MEMBER
    committee_role: str | None = None
    name: str | None = None
    email: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return True


@dataclass(frozen=True)
class Anonymous:
    """No valid credential was presented."""

    @property
    def is_authenticated(self) -> bool:
        return False


ANONYMOUS = Anonymous()

Principal = Identity | Anonymous


def parse_role(raw: object) -> Role:
    """Map a stored role value to Role, falling back to MEMBER."""
    if isinstance(raw, Role):
        return raw
    if not isinstance(raw, str):
        return Role.MEMBER
    try:
        return Role(raw.strip().upper())
    except ValueError:
        return Role.MEMBER
