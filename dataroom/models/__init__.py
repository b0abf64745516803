"""ORM Models — SQLAlchemy declarative models for the data room store.

Invariants:
    - All models inherit from Base (db/base.py)
    - DataRoom is the aggregate root; every DocumentNode is scoped by data_room_id

Design Decisions:
    - One file per entity
    - All models imported here so SQLAlchemy resolves string-based relationship()
      references before any query runs
"""

from dataroom.models.data_room import DataRoom  # noqa: F401
from dataroom.models.document_node import DocumentNode  # noqa: F401
