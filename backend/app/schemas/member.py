"""Member Schemas — request bodies and responses for the member and dues endpoints.

Invariants:
    - Datetimes entering the API are normalized to timezone-aware UTC
    - PaymentConfirmation.amount is NOT range-checked here: the state machine
      owns that rule and reports it as INVALID_PAYMENT (422)
    - Response statuses are effective statuses, never the raw stored value

Design Decisions:
    - snake_case field names on the wire, same as every other schema module
    - ProfileUpdate only exposes fields a member may change about themselves
"""

from datetime import datetime, timezone

from pydantic import BaseModel, Field, field_validator

from app.core.domain_types import MembershipStatus

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


def _to_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


# --- Requests -----------------------------------------------------------------

class ProfileUpdate(BaseModel):
    """Self-service profile edit (PATCH /api/members/me)."""
    name: str | None = Field(None, min_length=2, max_length=200)
    phone: str | None = Field(None, max_length=50)
    emergency_contact: str | None = Field(None, max_length=200)
    emergency_contact_phone: str | None = Field(None, max_length=50)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if len(v) < 2:
            raise ValueError("name must contain at least 2 characters")
        return v


class MembershipUpdate(BaseModel):
    """Administrative dues edit (PATCH /api/members/{id})."""
    status: MembershipStatus
    renewal_date: datetime
    paid_at: datetime | None = None
    amount: float = Field(ge=0, allow_inf_nan=False)
    notes: str | None = Field(None, max_length=1000)

    @field_validator("renewal_date", "paid_at")
    @classmethod
    def normalize_datetime(cls, v: datetime | None) -> datetime | None:
        return _to_utc(v)


class PaymentConfirmation(BaseModel):
    amount: float


class MemberCreate(BaseModel):
    """Staff-created member account with its initial dues record."""
    name: str = Field(min_length=2, max_length=200)
    email: str = Field(max_length=320, pattern=EMAIL_PATTERN)
    status: MembershipStatus = MembershipStatus.PENDING
    renewal_date: datetime | None = None
    paid_at: datetime | None = None
    amount: float = Field(0.0, ge=0, allow_inf_nan=False)
    notes: str | None = Field(None, max_length=1000)

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        return v.strip().lower()

    @field_validator("renewal_date", "paid_at")
    @classmethod
    def normalize_datetime(cls, v: datetime | None) -> datetime | None:
        return _to_utc(v)


# --- Responses ----------------------------------------------------------------

class MembershipResponse(BaseModel):
    id: str
    user_id: str
    status: MembershipStatus
    amount: float
    renewal_date: datetime | None = None
    paid_at: datetime | None = None
    joined_at: datetime
    notes: str | None = None
    phone: str | None = None
    emergency_contact: str | None = None
    emergency_contact_phone: str | None = None


class UserSummary(BaseModel):
    id: str
    name: str | None = None
    email: str
    role: str
    committee_role: str | None = None
    image: str | None = None
    created_at: datetime


class MemberResponse(BaseModel):
    user: UserSummary
    membership: MembershipResponse | None = None


class MemberPage(BaseModel):
    members: list[MemberResponse]
    total: int
    pages: int
    page: int


class MemberStats(BaseModel):
    total: int
    active: int
    pending: int
    inactive: int
    expired: int
    revenue: float
    upcoming_renewals: int
    new_this_week: int


class DashboardStats(BaseModel):
    total_members: int
    active_members: int
    pending_renewals: int
    recent_registrations: int


class ReminderResult(BaseModel):
    sent: int
