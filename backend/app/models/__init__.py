"""ORM Models — SQLAlchemy declarative models for users, sessions, dues and audit.

Invariants:
    - All models inherit from Base (db/base.py)
    - User is the aggregate root; sessions, memberships and activity logs reference users.id

Design Decisions:
    - One file per entity for locality
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from app.models.user import User  # noqa: F401
from app.models.auth_session import AuthSession  # noqa: F401
from app.models.membership import Membership  # noqa: F401
from app.models.activity_log import ActivityLog  # noqa: F401
