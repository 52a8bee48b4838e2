"""User ORM — persisted identity managed by the auth provider.

Invariants:
    - id is a string primary key (auth-provider generated, uuid4 by default)
    - email is unique
    - role is stored as a plain string; it is parsed (unknown → MEMBER) when read
    - committee_role is only meaningful when role == COMMITTEE

Design Decisions:
    - Role kept as String, not a DB enum: legacy rows with unknown values must
      still load and degrade to least privilege instead of failing the query
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base


def _uuid_str() -> str:
    return str(uuid.uuid4())


class User(Base):
    """Club identity — never deleted by the access core."""
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=_uuid_str,
    )
    name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    email: Mapped[str] = mapped_column(
        String(320), nullable=False, unique=True, index=True,
    )
    role: Mapped[str] = mapped_column(
        String(20), nullable=False, default="MEMBER",
    )
    committee_role: Mapped[str | None] = mapped_column(
        String(100), nullable=True,
    )
    image: Mapped[str | None] = mapped_column(String(2048), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    membership: Mapped["Membership | None"] = relationship(
        "Membership", back_populates="user", uselist=False, lazy="selectin",
    )
