"""Route Modules — one file per resource.

Invariants:
    - Each module defines its own APIRouter with prefix and tags
    - Lifecycle rules stay in core/ and services/; routes sequence lookups and responses

Design Decisions:
    - Explicit registration in main.py over auto-discovery
"""
