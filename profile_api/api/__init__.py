"""API Layer — FastAPI routes, readiness gate, and error handlers.

Invariants:
    - Routes registered explicitly in main.py (no auto-discovery)
    - Errors are translated to HTTP only here
"""
