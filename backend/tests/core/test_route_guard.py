"""Route Guard decision — redirect for pages, JSON rejection for the API."""

from app.core.domain_types import Role
from app.core.identity import ANONYMOUS, Identity
from app.core.route_guard import (
    GuardOutcome, access_denied_url, decide, login_redirect_url,
)
from app.core.route_policy import build_default_policy

POLICY = build_default_policy()


def _decide(path, identity):
    return decide(POLICY.classify(path), identity, path)


def test_anonymous_page_request_redirects_to_login_with_callback():
    decision = _decide("/dashboard", ANONYMOUS)
    assert decision.outcome is GuardOutcome.REDIRECT
    assert decision.status_code == 307
    assert decision.location == "/auth/login?callbackUrl=/dashboard"


def test_anonymous_api_request_gets_401_json_never_redirect():
    decision = _decide("/api/members", ANONYMOUS)
    assert decision.outcome is GuardOutcome.REJECT
    assert decision.status_code == 401
    assert decision.location is None
    assert decision.body == {"error": "Non autorisé", "code": "UNAUTHENTICATED"}


def test_member_on_staff_api_gets_403():
    decision = _decide("/api/members", Identity(user_id="u-1", role=Role.MEMBER))
    assert decision.status_code == 403
    assert decision.body["error"] == "Accès refusé"


def test_member_on_staff_page_redirects_to_access_denied():
    decision = _decide("/admin", Identity(user_id="u-1", role=Role.MEMBER))
    assert decision.outcome is GuardOutcome.REDIRECT
    assert decision.location == "/access-denied?from=/admin"


def test_committee_passes_staff_api():
    decision = _decide("/api/members", Identity(user_id="u-1", role=Role.COMMITTEE))
    assert decision.outcome is GuardOutcome.PASS


def test_unclassified_and_public_paths_pass_for_anonymous():
    assert _decide("/", ANONYMOUS).outcome is GuardOutcome.PASS
    assert _decide("/api/health", ANONYMOUS).outcome is GuardOutcome.PASS


def test_custom_login_path():
    decision = decide(
        POLICY.classify("/profile"), ANONYMOUS, "/profile", login_path="/connexion",
    )
    assert decision.location == "/connexion?callbackUrl=/profile"


def test_url_helpers():
    assert login_redirect_url("/auth/login", "/orders") == "/auth/login?callbackUrl=/orders"
    assert access_denied_url("/access-denied", "/members") == "/access-denied?from=/members"
