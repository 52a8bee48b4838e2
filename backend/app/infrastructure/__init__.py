"""Infrastructure Layer — database, repositories, mail and logging adapters.

Invariants:
    - Implements the Protocols declared in core/repository_protocols.py
    - Storage failures surface as typed errors from core/errors.py
"""
