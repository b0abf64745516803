"""Document Service — upload, folder creation and node deletion for one room.

Invariants:
    - Ownership is checked before any bytes are written to scratch storage
    - Node insert and counter increment commit together; on failure the scratch file
      is discarded and nothing is recorded
    - Node deletion decrements by exactly the rows removed, then unlinks their scratch files
    - A promotion failure never fails the upload: the node is returned RECEIVED
"""

import logging
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.core.domain_types import CallerIdentity
from dataroom.core.errors import DomainValidationError, MissingUploadError
from dataroom.core.upload_naming import display_name_for
from dataroom.infrastructure.upload_receiver import (
    AsyncReadable, TemporaryUploadReceiver,
)
from dataroom.models.document_node import DocumentNode
from dataroom.services.access_guard import authorize
from dataroom.services.promotion import PromotionPipeline
from dataroom.services.statistics_tracker import StatisticsTracker
from dataroom.services.tree_store import RemovedNodes, TreeStore

logger = logging.getLogger(__name__)


class DocumentService:
    def __init__(
        self,
        db: AsyncSession,
        receiver: TemporaryUploadReceiver,
        promotion: PromotionPipeline | None = None,
    ):
        self.db = db
        self.receiver = receiver
        self.promotion = promotion
        self.tree = TreeStore(db)
        self.stats = StatisticsTracker(db)

    async def upload(
        self,
        caller: CallerIdentity,
        room_id: str | UUID,
        source: AsyncReadable | None,
        filename: str | None,
        content_type: str | None = None,
        *,
        name: str | None = None,
        folder_id: str | None = None,
        description: str | None = None,
    ) -> DocumentNode:
        room = await authorize(self.db, caller.user_id, room_id)
        if source is None:
            raise MissingUploadError()

        received = await self.receiver.receive(source, filename, content_type)
        try:
            node = await self.tree.create_node(
                room.id,
                display_name=display_name_for(received.original_filename, name),
                original_filename=received.original_filename,
                size_bytes=received.size_bytes,
                parent_folder_id=folder_id,
                mime_type=received.mime_type,
                temp_storage_path=str(received.temp_path),
                description=description,
            )
            await self.stats.on_node_created(room.id, node.size_bytes)
            await self.db.commit()
        except BaseException:
            await self.db.rollback()
            await self.receiver.discard(received.temp_path)
            raise

        logger.info(
            f"Stored document {node.display_name!r}",
            extra={
                "data_room_id": room.id, "node_id": node.id,
                "size_bytes": node.size_bytes,
            },
        )
        if self.promotion is not None:
            node = await self.promotion.try_promote(node)
        return node

    async def create_folder(
        self,
        caller: CallerIdentity,
        room_id: str | UUID,
        name: str,
        folder_id: str | None = None,
        description: str | None = None,
    ) -> DocumentNode:
        """A bytes-less node; counts toward documentCount like any node."""
        room = await authorize(self.db, caller.user_id, room_id)
        name = (name or "").strip()
        if not name:
            raise DomainValidationError("Folder name is required", "name")
        node = await self.tree.create_node(
            room.id,
            display_name=name,
            original_filename=name,
            size_bytes=0,
            parent_folder_id=folder_id,
            description=description,
        )
        await self.stats.on_node_created(room.id, 0)
        await self.db.commit()
        logger.info(
            f"Created folder {name!r}",
            extra={"data_room_id": room.id, "node_id": node.id},
        )
        return node

    async def delete(
        self, caller: CallerIdentity, room_id: str | UUID, node_id: str | UUID,
    ) -> RemovedNodes:
        room = await authorize(self.db, caller.user_id, room_id)
        removed = await self.tree.delete_node(room.id, node_id)
        await self.stats.on_nodes_deleted(room.id, removed.sizes)
        await self.db.commit()
        for path in removed.temp_paths:
            await self.receiver.discard(path)
        return removed
