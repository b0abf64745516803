"""Infrastructure Layer — database, logging, scratch storage and content store adapters.

Invariants:
    - Infrastructure modules may import core/, never services/ or api/
"""
