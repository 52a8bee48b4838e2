"""Route Policy — segment matching, parameters and most-specific-wins."""

import pytest

from app.core.domain_types import RouteKind
from app.core.role_policy import ADMIN_ONLY, AUTHENTICATED, PUBLIC_ACCESS, STAFF_ROLES
from app.core.route_policy import (
    RoutePolicy, RouteRule, build_default_policy, kind_for_path, split_path,
)


@pytest.fixture
def policy():
    return build_default_policy()


def test_split_path_drops_empty_segments():
    assert split_path("/api//members/") == ("api", "members")
    assert split_path("/") == ()


def test_prefix_covers_sub_paths(policy):
    assert policy.classify("/admin/users").requirement == STAFF_ROLES


def test_matching_is_by_segment_not_by_string_prefix(policy):
    assert policy.classify("/administer") is None


def test_unclassified_path_returns_none(policy):
    assert policy.classify("/") is None
    assert policy.classify("/blog/some-post") is None


@pytest.mark.parametrize("path,requirement", [
    ("/dashboard", AUTHENTICATED),
    ("/profile/edit", AUTHENTICATED),
    ("/equipment/cart", AUTHENTICATED),
    ("/members/u-1", STAFF_ROLES),
    ("/api/health", PUBLIC_ACCESS),
    ("/api/events/abc", PUBLIC_ACCESS),
    ("/api/events/abc/register", AUTHENTICATED),
    ("/api/members", STAFF_ROLES),
    ("/api/members/me", AUTHENTICATED),
    ("/api/members/u-1", AUTHENTICATED),
    ("/api/members/u-1/payments", STAFF_ROLES),
    ("/api/members/u-1/send-reminder", STAFF_ROLES),
    ("/api/admin/dashboard", STAFF_ROLES),
    ("/api/admin/users", ADMIN_ONLY),
    ("/api/admin/users/u-1/role", ADMIN_ONLY),
    ("/api/admin/users/u-1/image", AUTHENTICATED),
])
def test_default_table(policy, path, requirement):
    assert policy.classify(path).requirement == requirement


def test_parameter_matches_exactly_one_segment():
    rule = RouteRule("/api/events/{id}/register", AUTHENTICATED, RouteKind.API)
    assert rule.matches(split_path("/api/events/42/register"))
    assert not rule.matches(split_path("/api/events/register"))


def test_literal_beats_parameter_at_equal_length():
    literal = RouteRule("/api/members/me", AUTHENTICATED, RouteKind.API)
    param = RouteRule("/api/members/{id}", STAFF_ROLES, RouteKind.API)
    policy = RoutePolicy(rules=(param, literal))
    assert policy.classify("/api/members/me") is literal
    assert policy.classify("/api/members/u-1") is param


def test_longer_rule_wins_over_prefix():
    short = RouteRule("/api/admin", STAFF_ROLES, RouteKind.API)
    long = RouteRule("/api/admin/users", ADMIN_ONLY, RouteKind.API)
    policy = RoutePolicy(rules=(long, short))
    assert policy.classify("/api/admin/users/x").requirement == ADMIN_ONLY


def test_kind_for_path():
    assert kind_for_path("/api/members") is RouteKind.API
    assert kind_for_path("/apiary") is RouteKind.UI
    assert kind_for_path("/dashboard") is RouteKind.UI


def test_public_rule_is_not_protected(policy):
    assert not policy.classify("/api/health").is_protected
    assert policy.classify("/dashboard").is_protected
