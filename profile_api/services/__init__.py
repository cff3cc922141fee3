"""Services Layer — request-scoped database work (profile lookup, liveness probe).

Invariants:
    - Every connection is borrowed through ConnectionPool.borrow() (scoped acquisition)
"""
