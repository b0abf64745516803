"""DataRoom ORM — owner-scoped container with incrementally maintained aggregates.

Invariants:
    - owner_user_id is non-nullable; every query filters on it
    - document_count / total_size_bytes never go negative (CHECK constraints)
    - Aggregates change only through relative UPDATE increments or reconciliation
    - Deleting a room removes its documents through ON DELETE CASCADE

Design Decisions:
    - tier/access/status stored as strings holding the enum values
    - documents loaded newest-first with selectin: every read returns the room with
      its embedded documents
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger, CheckConstraint, DateTime, Index, Integer, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from dataroom.core.domain_types import (
    DataRoomAccess, DataRoomStatus, DataRoomTier,
)
from dataroom.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DataRoom(Base):
    """Data room aggregate root — owns all DocumentNodes."""
    __tablename__ = "data_rooms"
    __table_args__ = (
        CheckConstraint("document_count >= 0", name="ck_data_rooms_document_count"),
        CheckConstraint("total_size_bytes >= 0", name="ck_data_rooms_total_size"),
        Index("ix_data_rooms_owner_created", "owner_user_id", "created_at"),
        Index("ix_data_rooms_external_listing_id", "external_listing_id"),
        Index("ix_data_rooms_external_asset_id", "external_asset_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    owner_user_id: Mapped[str] = mapped_column(String(128), nullable=False)
    owner_organization_id: Mapped[str | None] = mapped_column(
        String(128), nullable=True,
    )
    external_asset_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True,
    )
    external_listing_id: Mapped[str | None] = mapped_column(
        String(255), nullable=True,
    )
    tier: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DataRoomTier.SIMPLE.value,
    )
    access: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DataRoomAccess.RESTRICTED.value,
    )
    status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=DataRoomStatus.INCOMPLETE.value,
    )
    document_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0,
    )
    total_size_bytes: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    # Relationships
    documents: Mapped[list["DocumentNode"]] = relationship(
        "DocumentNode", back_populates="data_room",
        cascade="all, delete-orphan", passive_deletes=True,
        lazy="selectin",
        order_by="DocumentNode.created_at.desc()",
    )
