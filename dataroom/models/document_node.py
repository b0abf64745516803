"""DocumentNode ORM — a file or folder entry in a data room's tree.

Invariants:
    - Always belongs to a DataRoom (data_room_id FK, ON DELETE CASCADE)
    - parent_folder_id, when set, references a node of the same room (checked by
      TreeStore before insert); the self-FK cascades to descendants
    - size_bytes is non-negative; folders carry 0
    - temp_storage_path is set until promotion; content_address is set after it

Design Decisions:
    - No is_folder flag: any node becomes a folder by being referenced as a parent
    - "metadata" column mapped to node_metadata (the attribute name is reserved by
      the declarative base)
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    BigInteger, CheckConstraint, DateTime, ForeignKey, Index, JSON, String, Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import UUID

from dataroom.core.domain_types import StorageState
from dataroom.core.storage_state import storage_state_of
from dataroom.db.base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class DocumentNode(Base):
    """Document node entity — file bytes or a folder for other nodes."""
    __tablename__ = "data_room_documents"
    __table_args__ = (
        CheckConstraint("size_bytes >= 0", name="ck_data_room_documents_size"),
        Index("ix_data_room_documents_data_room_id", "data_room_id"),
        Index("ix_data_room_documents_parent_folder_id", "parent_folder_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4,
    )
    data_room_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("data_rooms.id", ondelete="CASCADE"),
        nullable=False,
    )
    parent_folder_id: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("data_room_documents.id", ondelete="CASCADE"),
        nullable=True,
    )
    display_name: Mapped[str] = mapped_column(Text, nullable=False)
    original_filename: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str | None] = mapped_column(String(255), nullable=True)
    size_bytes: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0,
    )

    # Storage state (Received: temp path only, Promoted: content address set)
    content_address: Mapped[str | None] = mapped_column(
        String(255), nullable=True,
    )
    content_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    temp_storage_path: Mapped[str | None] = mapped_column(Text, nullable=True)

    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    node_metadata: Mapped[dict | None] = mapped_column(
        "metadata", JSON, nullable=True,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=_utcnow,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False,
        default=_utcnow, onupdate=_utcnow,
    )

    # Relationships
    data_room: Mapped["DataRoom"] = relationship(
        "DataRoom", back_populates="documents",
    )

    @property
    def storage_state(self) -> StorageState:
        return storage_state_of(self.content_address, self.temp_storage_path)
