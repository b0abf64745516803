"""Service Layer — imperative shell around the pure core.

Invariants:
    - Services own transaction boundaries (commit/rollback); routes never commit
    - Every room-scoped operation starts with access_guard.authorize
"""
