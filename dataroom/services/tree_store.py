"""Document Tree Store — node persistence and subtree deletion within a room.

Invariants:
    - A node's parent must be a node of the SAME room, checked in the insert transaction
    - Inserting into a room that no longer exists raises the room's ResourceNotFoundError
    - delete_node removes the node and every descendant with DELETE ... RETURNING,
      one statement per tree level, deepest first; the returned rows are the only
      source for the counter decrement
    - A delete that removes zero rows raises ResourceNotFoundError (no double decrement)
    - Never commits: the calling service commits together with the counter update

Design Decisions:
    - Subtree resolved in Python (core/node_tree.py) over the room's (id, parent) rows:
      the same code runs on PostgreSQL and SQLite without recursive CTE dialect quirks
    - The self-FK also cascades; descendants attached after the subtree read are removed
      by the database and caught by reconciliation
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.core.domain_types import parse_uuid
from dataroom.core.errors import (
    ErrorContext, FolderNotFoundError, ResourceNotFoundError,
)
from dataroom.core.node_tree import subtree_levels
from dataroom.core.storage_state import can_promote
from dataroom.models.document_node import DocumentNode
from dataroom.services.access_guard import room_not_found

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RemovedNodes:
    """What a subtree delete actually removed."""
    node_ids: list[UUID]
    sizes: list[int]
    temp_paths: list[str]

    @property
    def total_size(self) -> int:
        return sum(self.sizes)


def document_not_found(node_id: object, room_id: object) -> ResourceNotFoundError:
    return ResourceNotFoundError(
        "Document", str(node_id),
        ErrorContext(data_room_id=str(room_id), node_id=str(node_id)),
    )


class TreeStore:
    """Node rows of one session; all lookups are scoped by data_room_id."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def resolve_parent(
        self, room_id: UUID, folder_id: str | UUID | None,
    ) -> UUID | None:
        """Validate folderId against the room. Empty values mean top level."""
        if folder_id is None or (isinstance(folder_id, str) and not folder_id.strip()):
            return None
        parsed = parse_uuid(folder_id)
        if parsed is None:
            raise FolderNotFoundError(
                str(folder_id), ErrorContext(data_room_id=str(room_id)),
            )
        found = await self.db.scalar(
            select(DocumentNode.id)
            .where(DocumentNode.id == parsed)
            .where(DocumentNode.data_room_id == room_id),
        )
        if found is None:
            raise FolderNotFoundError(
                str(folder_id), ErrorContext(data_room_id=str(room_id)),
            )
        return parsed

    async def create_node(
        self,
        room_id: UUID,
        *,
        display_name: str,
        original_filename: str,
        size_bytes: int,
        parent_folder_id: str | UUID | None = None,
        mime_type: str | None = None,
        temp_storage_path: str | None = None,
        description: str | None = None,
        metadata: dict | None = None,
    ) -> DocumentNode:
        parent_id = await self.resolve_parent(room_id, parent_folder_id)
        node = DocumentNode(
            data_room_id=room_id,
            parent_folder_id=parent_id,
            display_name=display_name,
            original_filename=original_filename,
            mime_type=mime_type,
            size_bytes=size_bytes,
            temp_storage_path=temp_storage_path,
            description=description,
            node_metadata=metadata,
        )
        self.db.add(node)
        try:
            await self.db.flush()
        except IntegrityError:
            # Room deleted after the caller was authorized
            await self.db.rollback()
            raise room_not_found(room_id)
        return node

    async def get_node(self, room_id: UUID, node_id: str | UUID) -> DocumentNode:
        parsed = parse_uuid(node_id)
        node = None
        if parsed is not None:
            node = await self.db.scalar(
                select(DocumentNode)
                .where(DocumentNode.id == parsed)
                .where(DocumentNode.data_room_id == room_id)
                .execution_options(populate_existing=True),
            )
        if node is None:
            raise document_not_found(node_id, room_id)
        return node

    async def delete_node(
        self, room_id: UUID, node_id: str | UUID,
    ) -> RemovedNodes:
        """Delete a node and its descendants, reporting exactly what was removed."""
        parsed = parse_uuid(node_id)
        if parsed is None:
            raise document_not_found(node_id, room_id)
        links = (await self.db.execute(
            select(DocumentNode.id, DocumentNode.parent_folder_id)
            .where(DocumentNode.data_room_id == room_id),
        )).all()
        levels = subtree_levels([(row[0], row[1]) for row in links], parsed)
        if not levels:
            raise document_not_found(node_id, room_id)

        rows = []
        # Deepest level first: parents go only after their children
        for level in reversed(levels):
            result = await self.db.execute(
                delete(DocumentNode)
                .where(DocumentNode.id.in_(level))
                .where(DocumentNode.data_room_id == room_id)
                .returning(
                    DocumentNode.id,
                    DocumentNode.size_bytes,
                    DocumentNode.temp_storage_path,
                )
                .execution_options(synchronize_session=False),
            )
            rows.extend(result.all())
        if not rows:
            raise document_not_found(node_id, room_id)
        removed = RemovedNodes(
            node_ids=[row[0] for row in rows],
            sizes=[int(row[1]) for row in rows],
            temp_paths=[row[2] for row in rows if row[2]],
        )
        logger.info(
            f"Deleted {len(removed.node_ids)} node(s) "
            f"freeing {removed.total_size} bytes",
            extra={"data_room_id": room_id, "node_id": parsed},
        )
        return removed

    async def list_pending_promotion(self, limit: int) -> list[DocumentNode]:
        """RECEIVED nodes across all rooms, oldest first."""
        result = await self.db.execute(
            select(DocumentNode)
            .where(DocumentNode.temp_storage_path.is_not(None))
            .where(DocumentNode.content_address.is_(None))
            .order_by(DocumentNode.created_at.asc())
            .limit(limit),
        )
        return [
            node for node in result.scalars().all()
            if can_promote(node.content_address, node.temp_storage_path)
        ]

    async def referenced_temp_names(self) -> set[str]:
        """Basenames of every scratch file a node still points at."""
        result = await self.db.execute(
            select(DocumentNode.temp_storage_path)
            .where(DocumentNode.temp_storage_path.is_not(None)),
        )
        return {
            path.replace("\\", "/").rsplit("/", 1)[-1]
            for path in result.scalars().all() if path
        }
