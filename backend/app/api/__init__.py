"""API Layer — route guard middleware, dependencies, routes and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - All endpoints return structured JSON responses; errors use {"error", "code"}
"""
