"""Profile API — user-profile lookups over a bounded database connection pool.

Invariants:
    - Package root contains no executable code (import side-effects prohibited)
"""
