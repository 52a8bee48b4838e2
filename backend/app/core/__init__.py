"""Core Layer — pure access-control and membership logic, no IO, no async, no DB.

Invariants:
    - No module in core/ imports from services/, api/, infrastructure/, or db/
    - All functions are pure and deterministic (time is always passed in as `now`)

Design Decisions:
    - Functional core separated from imperative shell: the route guard, role
      policy and membership state machine are testable without a database
"""
