"""Route Policy — immutable classification of paths into access requirements.

Invariants:
    - RoutePolicy is immutable once built (tuple of frozen RouteRule)
    - Matching is by path segment: "/admin" covers "/admin/x" but not "/administer"
    - A "{name}" pattern segment matches exactly one path segment
    - A rule matches any path that extends it (prefix semantics on segments)
    - Most specific rule wins: more segments first, then more literal segments
    - Unclassified paths return None (the guard passes them through)

Design Decisions:
    - Policy is a value built once at startup and injected into the middleware,
      not a module-level mutable list
    - Public rules are allowed in the table so that a public sub-tree can be
      carved out of a protected prefix
"""

from dataclasses import dataclass

from app.core.domain_types import RouteKind
from app.core.role_policy import (
    Requirement, PUBLIC_ACCESS, AUTHENTICATED, STAFF_ROLES, ADMIN_ONLY,
)


def split_path(path: str) -> tuple[str, ...]:
    """Normalize a URL path into its non-empty segments."""
    return tuple(segment for segment in path.split("/") if segment)


def _is_param(segment: str) -> bool:
    return segment.startswith("{") and segment.endswith("}")


@dataclass(frozen=True)
class RouteRule:
    """One entry of the classification table."""
    pattern: str
    requirement: Requirement
    kind: RouteKind

    @property
    def segments(self) -> tuple[str, ...]:
        return split_path(self.pattern)

    @property
    def specificity(self) -> tuple[int, int]:
        segs = self.segments
        return len(segs), sum(1 for s in segs if not _is_param(s))

    def matches(self, path_segments: tuple[str, ...]) -> bool:
        segs = self.segments
        if len(path_segments) < len(segs):
            return False
        return all(
            _is_param(expected) or expected == actual
            for expected, actual in zip(segs, path_segments)
        )

    @property
    def is_protected(self) -> bool:
        return not self.requirement.public


@dataclass(frozen=True)
class RoutePolicy:
    """Read-only route table; safe for unsynchronized concurrent reads."""
    rules: tuple[RouteRule, ...]

    def classify(self, path: str) -> RouteRule | None:
        segments = split_path(path)
        candidates = [rule for rule in self.rules if rule.matches(segments)]
        if not candidates:
            return None
        return max(candidates, key=lambda rule: rule.specificity)


def kind_for_path(path: str) -> RouteKind:
    """Paths under /api are programmatic endpoints, everything else is a page."""
    segments = split_path(path)
    return RouteKind.API if segments[:1] == ("api",) else RouteKind.UI


def _rule(pattern: str, requirement: Requirement) -> RouteRule:
    return RouteRule(pattern, requirement, kind_for_path(pattern))


def build_default_policy() -> RoutePolicy:
    """The club's route table."""
    return RoutePolicy(rules=(
        # ─── Pages ───────────────────────────────────────────────
        _rule("/dashboard", AUTHENTICATED),
        _rule("/profile", AUTHENTICATED),
        _rule("/orders", AUTHENTICATED),
        _rule("/equipment/cart", AUTHENTICATED),
        _rule("/equipment/checkout", AUTHENTICATED),
        _rule("/equipment/order", AUTHENTICATED),
        _rule("/admin", STAFF_ROLES),
        _rule("/members", STAFF_ROLES),
        # ─── Public API ──────────────────────────────────────────
        _rule("/api/health", PUBLIC_ACCESS),
        _rule("/api/blog", PUBLIC_ACCESS),
        _rule("/api/events", PUBLIC_ACCESS),
        _rule("/api/events/{id}/register", AUTHENTICATED),
        _rule("/api/gallery", PUBLIC_ACCESS),
        _rule("/api/team", PUBLIC_ACCESS),
        _rule("/api/products", PUBLIC_ACCESS),
        # ─── Member API ──────────────────────────────────────────
        _rule("/api/members/me", AUTHENTICATED),
        _rule("/api/members/{id}", AUTHENTICATED),
        _rule("/api/members/{id}/{operation}", STAFF_ROLES),
        _rule("/api/members", STAFF_ROLES),
        _rule("/api/orders", AUTHENTICATED),
        _rule("/api/upload", AUTHENTICATED),
        # ─── Back office API ─────────────────────────────────────
        _rule("/api/admin", STAFF_ROLES),
        _rule("/api/admin/users", ADMIN_ONLY),
        _rule("/api/admin/users/{id}/image", AUTHENTICATED),
    ))
