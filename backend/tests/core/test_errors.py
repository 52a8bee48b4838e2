"""Error hierarchy — codes, statuses and the REST envelope."""

from app.core.errors import (
    AuditWriteFailedError,
    ClubError,
    ConflictError,
    ErrorCategory,
    ForbiddenError,
    InvalidPaymentError,
    MembershipMissingError,
    ResourceNotFoundError,
    SessionStoreUnavailableError,
    UnauthenticatedError,
)


def test_unauthenticated_envelope():
    err = UnauthenticatedError()
    assert err.http_status == 401
    assert err.to_response() == {"error": "Non autorisé", "code": "UNAUTHENTICATED"}


def test_forbidden_envelope():
    err = ForbiddenError()
    assert err.http_status == 403
    assert err.to_response() == {"error": "Accès refusé", "code": "FORBIDDEN"}


def test_domain_errors_are_422():
    assert InvalidPaymentError(0).http_status == 422
    assert MembershipMissingError("u-1").http_status == 422
    assert MembershipMissingError("u-1").code == "MEMBERSHIP_MISSING"


def test_not_found_and_conflict():
    assert ResourceNotFoundError("Membre", "u-1").to_response()["error"] == "Membre introuvable"
    assert ConflictError("dup").http_status == 409


def test_infrastructure_errors():
    store = SessionStoreUnavailableError("timeout")
    assert store.category is ErrorCategory.DATABASE
    assert "timeout" in store.message
    audit = AuditWriteFailedError("disk full", "MEMBER_CREATED")
    assert audit.action == "MEMBER_CREATED"


def test_all_errors_share_the_base():
    assert isinstance(ForbiddenError(), ClubError)
    assert isinstance(ForbiddenError(), Exception)
