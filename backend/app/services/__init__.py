"""Services Layer — IO orchestration around the pure core.

Invariants:
    - Services depend on the Protocols in core/repository_protocols.py, never on ORM models
    - Domain decisions are delegated to core/ functions

Design Decisions:
    - One service per concern (sessions, memberships, renewals, audit) for locality
"""
