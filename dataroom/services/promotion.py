"""Promotion Pipeline — moves RECEIVED node bytes into the content-addressed store.

Invariants:
    - Only RECEIVED nodes are promoted; PROMOTED is terminal
    - The write is guarded by content_address IS NULL: two promoters racing on the
      same node record one address, and only the winner removes the scratch file
    - A failed promotion leaves the node RECEIVED and its scratch file in place;
      it never fails the upload request nor stops a retry pass
    - Counters are untouched: promotion changes where bytes live, not how many

Design Decisions:
    - Synchronous-first: uploads are promoted right after their commit, and
      promote_pending() is the durable retry path run by the maintenance loop
    - The content hash is recorded in the node metadata under "assetHash"
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.core.errors import DataRoomError
from dataroom.core.repository_protocols import ContentStore
from dataroom.core.storage_state import can_promote
from dataroom.infrastructure.upload_receiver import TemporaryUploadReceiver
from dataroom.models.document_node import DocumentNode
from dataroom.services.tree_store import TreeStore

logger = logging.getLogger(__name__)

# Anything that can go wrong after the upload committed: store, scratch file, database
PROMOTION_FAILURES = (DataRoomError, SQLAlchemyError, OSError)


@dataclass(frozen=True)
class PromotionOutcome:
    node_id: UUID
    promoted: bool
    error: str | None = None


class PromotionPipeline:
    def __init__(
        self,
        db: AsyncSession,
        store: ContentStore,
        receiver: TemporaryUploadReceiver,
    ):
        self.db = db
        self.store = store
        self.receiver = receiver

    async def promote(self, node_id: UUID) -> DocumentNode | None:
        """Promote one node. Raises ContentStoreError when the store fails."""
        node = await self._load(node_id)
        if node is None or not can_promote(node.content_address, node.temp_storage_path):
            return node

        temp_path = node.temp_storage_path
        address = await self.store.add(
            Path(temp_path), node.original_filename or node.display_name,
        )
        metadata = dict(node.node_metadata or {})
        if address.asset_hash:
            metadata["assetHash"] = address.asset_hash

        result = await self.db.execute(
            update(DocumentNode)
            .where(DocumentNode.id == node_id)
            .where(DocumentNode.content_address.is_(None))
            .values(
                content_address=address.cid,
                content_url=address.url,
                temp_storage_path=None,
                node_metadata=metadata or None,
            )
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        if result.rowcount == 1:
            try:
                await self.receiver.discard(temp_path)
            except OSError as e:
                # Unreferenced now; the orphan sweep removes it later
                logger.warning(
                    f"Could not remove promoted scratch file: {e}",
                    extra={"node_id": node_id, "path": temp_path},
                )
            logger.info(
                f"Promoted node to {address.cid}",
                extra={"node_id": node_id, "data_room_id": node.data_room_id},
            )
        return await self._load(node_id)

    async def try_promote(self, node: DocumentNode) -> DocumentNode:
        """Promote after upload; failures are logged and the node stays RECEIVED."""
        node_id = node.id
        # Detached copy keeps its committed values even if the session rolls back
        self.db.expunge(node)
        try:
            promoted = await self.promote(node_id)
        except PROMOTION_FAILURES as e:
            await self._record_failure(node_id, e)
            return node
        return promoted or node

    async def promote_pending(self, limit: int = 50) -> list[PromotionOutcome]:
        """Retry promotion for the oldest RECEIVED nodes."""
        pending = await TreeStore(self.db).list_pending_promotion(limit)
        node_ids = [node.id for node in pending]
        outcomes = []
        for node_id in node_ids:
            try:
                await self.promote(node_id)
            except PROMOTION_FAILURES as e:
                outcomes.append(PromotionOutcome(
                    node_id, False, await self._record_failure(node_id, e),
                ))
                continue
            outcomes.append(PromotionOutcome(node_id, True))
        if outcomes:
            logger.info(
                "Promotion retry pass finished",
                extra={
                    "promoted": sum(1 for o in outcomes if o.promoted),
                    "failed": sum(1 for o in outcomes if not o.promoted),
                },
            )
        return outcomes

    async def _record_failure(self, node_id: UUID, error: Exception) -> str:
        """Roll back whatever the attempt left open and log why it failed."""
        await self.db.rollback()
        if isinstance(error, FileNotFoundError):
            logger.error(
                "Scratch file missing for RECEIVED node",
                extra={"node_id": node_id, "path": error.filename},
            )
            return "scratch file missing"
        if isinstance(error, DataRoomError):
            logger.warning(
                f"Promotion deferred: {error.message}",
                extra={"node_id": node_id, "error_code": error.code},
            )
            return error.message
        logger.error(
            f"Promotion failed: {error!r}", extra={"node_id": node_id},
            exc_info=True,
        )
        return str(error) or type(error).__name__

    async def _load(self, node_id: UUID) -> DocumentNode | None:
        return await self.db.scalar(
            select(DocumentNode)
            .where(DocumentNode.id == node_id)
            .execution_options(populate_existing=True),
        )
