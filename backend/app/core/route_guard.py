"""Route Guard Decision — pure allow / redirect / reject outcome for one request.

Invariants:
    - Unclassified or public path → PASS, regardless of the caller
    - Protected path + anonymous → UI: redirect to login with callbackUrl = original path;
      API: 401 {"error": "Non autorisé"}, never a redirect
    - Protected path + authenticated but not allowed → API: 403 {"error": "Accès refusé"};
      UI: redirect to the access-denied page
    - Never PASS for a protected path without an allowed Identity

Design Decisions:
    - Resolution (IO) happens in the middleware; this module only sees its result,
      so fail-closed handling reduces to "the middleware hands us ANONYMOUS"
    - Route-level owner checks are not possible (no resource loaded yet); the
      handlers apply the owner escape hatch through role_policy
"""

from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import urlencode

from app.core.domain_types import RouteKind
from app.core.identity import Identity, Principal
from app.core.role_policy import Decision, authorize
from app.core.route_policy import RouteRule

UNAUTHENTICATED_MESSAGE = "Non autorisé"
FORBIDDEN_MESSAGE = "Accès refusé"


class GuardOutcome(str, Enum):
    PASS = "pass"
    REDIRECT = "redirect"
    REJECT = "reject"


@dataclass(frozen=True)
class GuardDecision:
    outcome: GuardOutcome
    status_code: int = 200
    location: str | None = None
    body: dict = field(default_factory=dict)


PASS = GuardDecision(GuardOutcome.PASS)


def login_redirect_url(login_path: str, path: str) -> str:
    """Login URL carrying the original path (query dropped) as callbackUrl."""
    return f"{login_path}?{urlencode({'callbackUrl': path}, safe='/')}"


def access_denied_url(access_denied_path: str, path: str) -> str:
    return f"{access_denied_path}?{urlencode({'from': path}, safe='/')}"


def decide(
    rule: RouteRule | None,
    identity: Principal,
    path: str,
    login_path: str = "/auth/login",
    access_denied_path: str = "/access-denied",
) -> GuardDecision:
    """Decide what happens to a request given its rule and resolved caller."""
    if rule is None or not rule.is_protected:
        return PASS

    if not isinstance(identity, Identity):
        if rule.kind is RouteKind.API:
            return GuardDecision(
                GuardOutcome.REJECT, 401,
                body={"error": UNAUTHENTICATED_MESSAGE, "code": "UNAUTHENTICATED"},
            )
        return GuardDecision(
            GuardOutcome.REDIRECT, 307,
            location=login_redirect_url(login_path, path),
        )

    if authorize(identity, rule.requirement) is Decision.ALLOWED:
        return PASS

    if rule.kind is RouteKind.API:
        return GuardDecision(
            GuardOutcome.REJECT, 403,
            body={"error": FORBIDDEN_MESSAGE, "code": "FORBIDDEN"},
        )
    return GuardDecision(
        GuardOutcome.REDIRECT, 307,
        location=access_denied_url(access_denied_path, path),
    )
