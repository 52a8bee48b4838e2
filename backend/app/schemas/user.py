"""User Schemas — role and avatar administration.

Invariants:
    - RoleUpdate.role is one of MEMBER, COACH, COMMITTEE, ADMIN
    - committee_role is trimmed, at most 100 characters, and only accepted
      together with role COMMITTEE (null is always accepted)
    - ImageUpdate.image is an http(s) URL or null (null clears the avatar)
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator, model_validator

from app.core.domain_types import Role


class RoleUpdate(BaseModel):
    role: Role
    committee_role: str | None = Field(None, max_length=100)

    @field_validator("committee_role", mode="before")
    @classmethod
    def strip_committee_role(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v

    @model_validator(mode="after")
    def committee_role_requires_committee(self):
        if self.committee_role and self.role is not Role.COMMITTEE:
            raise ValueError("committee_role is only allowed for COMMITTEE")
        return self


class ImageUpdate(BaseModel):
    image: str | None = Field(..., max_length=2048)

    @field_validator("image")
    @classmethod
    def check_url(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        scheme, sep, rest = v.partition("://")
        if not sep or scheme.lower() not in ("http", "https") or not rest:
            raise ValueError("image must be an http(s) URL")
        return v


class UserResponse(BaseModel):
    id: str
    name: str | None = None
    email: str
    role: Role
    committee_role: str | None = None
    image: str | None = None
    created_at: datetime
    updated_at: datetime


class UserPage(BaseModel):
    users: list[UserResponse]
    total: int
    pages: int
    page: int
