"""Core Layer — domain types and the error taxonomy, no IO.

Invariants:
    - No module in core/ imports from services/, api/, or infrastructure/
"""
