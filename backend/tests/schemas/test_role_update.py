"""RoleUpdate / ImageUpdate — committee function and avatar URL validation."""

import pytest
from pydantic import ValidationError

from app.core.domain_types import Role
from app.schemas.user import ImageUpdate, RoleUpdate


def test_committee_with_function():
    assert RoleUpdate(role="COMMITTEE", committee_role="Président").committee_role == "Président"


def test_committee_without_function():
    assert RoleUpdate(role="COMMITTEE").committee_role is None


def test_committee_with_null_function():
    assert RoleUpdate(role="COMMITTEE", committee_role=None).committee_role is None


def test_non_committee_without_function():
    assert RoleUpdate(role="MEMBER").role is Role.MEMBER


def test_non_committee_with_function_is_rejected():
    with pytest.raises(ValidationError):
        RoleUpdate(role="COACH", committee_role="Président")


def test_function_longer_than_100_is_rejected():
    with pytest.raises(ValidationError):
        RoleUpdate(role="COMMITTEE", committee_role="A" * 101)


def test_function_of_exactly_100_is_accepted():
    assert len(RoleUpdate(role="COMMITTEE", committee_role="A" * 100).committee_role) == 100


def test_function_is_trimmed():
    assert RoleUpdate(role="COMMITTEE", committee_role="  Trésorier  ").committee_role == "Trésorier"


@pytest.mark.parametrize("function", ["Référent technique", "Vice-Président délégué"])
def test_free_text_and_accents(function):
    assert RoleUpdate(role="COMMITTEE", committee_role=function).committee_role == function


def test_unknown_role_is_rejected():
    with pytest.raises(ValidationError):
        RoleUpdate(role="SUPERADMIN")


def test_admin_with_null_function():
    assert RoleUpdate(role="ADMIN", committee_role=None).role is Role.ADMIN


@pytest.mark.parametrize("url", ["https://cdn.ladtc.be/a.png", "http://example.org/x.jpg"])
def test_image_accepts_http_urls(url):
    assert ImageUpdate(image=url).image == url


def test_image_accepts_null():
    assert ImageUpdate(image=None).image is None


@pytest.mark.parametrize("url", ["ftp://host/a.png", "not a url", "https://"])
def test_image_rejects_other_values(url):
    with pytest.raises(ValidationError):
        ImageUpdate(image=url)
