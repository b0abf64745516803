"""Aggregate Statistics Tracker — room counters via store-native relative increments.

Invariants:
    - on_node_created / on_nodes_deleted issue one UPDATE ... SET x = x + delta;
      no read-modify-write in Python, so concurrent mutations never lose updates
    - Neither method commits: the caller commits together with the node mutation
    - reconcile_room() is idempotent: recomputes from node rows and overwrites only on drift
    - Drift is logged as IntegrityDriftError (WARNING) and never raised to clients
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.core.errors import IntegrityDriftError
from dataroom.core.room_stats import (
    RoomTotals, compare_totals, creation_delta, removal_delta,
)
from dataroom.models.data_room import DataRoom
from dataroom.models.document_node import DocumentNode

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReconcileReport:
    data_room_id: UUID
    recorded: RoomTotals
    actual: RoomTotals

    @property
    def drifted(self) -> bool:
        return not compare_totals(self.recorded, self.actual)


class StatisticsTracker:
    """Keeps DataRoom.document_count / total_size_bytes in step with node rows."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def on_node_created(self, room_id: UUID, size_bytes: int) -> None:
        await self._apply(room_id, creation_delta(size_bytes))

    async def on_node_deleted(self, room_id: UUID, size_bytes: int) -> None:
        await self.on_nodes_deleted(room_id, [size_bytes])

    async def on_nodes_deleted(
        self, room_id: UUID, freed_sizes: list[int],
    ) -> None:
        """Decrement by exactly the rows a delete removed."""
        delta = removal_delta(freed_sizes)
        if delta.document_count == 0:
            return
        await self._apply(room_id, delta)

    async def _apply(self, room_id: UUID, delta: RoomTotals) -> None:
        await self.db.execute(
            update(DataRoom)
            .where(DataRoom.id == room_id)
            .values(
                document_count=DataRoom.document_count + delta.document_count,
                total_size_bytes=(
                    DataRoom.total_size_bytes + delta.total_size_bytes
                ),
            )
            .execution_options(synchronize_session=False),
        )

    async def actual_totals(self, room_id: UUID) -> RoomTotals:
        """Count and size sum straight from the node rows."""
        result = await self.db.execute(
            select(
                func.count(DocumentNode.id),
                func.coalesce(func.sum(DocumentNode.size_bytes), 0),
            ).where(DocumentNode.data_room_id == room_id),
        )
        count, total = result.one()
        return RoomTotals(int(count), int(total))

    async def reconcile_room(self, room_id: UUID) -> ReconcileReport | None:
        """Recompute a room's counters from its nodes. None if the room is gone."""
        recorded_row = (await self.db.execute(
            select(DataRoom.document_count, DataRoom.total_size_bytes)
            .where(DataRoom.id == room_id),
        )).one_or_none()
        if recorded_row is None:
            return None
        recorded = RoomTotals(int(recorded_row[0]), int(recorded_row[1]))
        actual = await self.actual_totals(room_id)
        report = ReconcileReport(room_id, recorded, actual)
        if not report.drifted:
            return report

        drift = IntegrityDriftError(
            str(room_id), recorded.as_tuple(), actual.as_tuple(),
        )
        logger.warning(
            drift.message,
            extra={"data_room_id": room_id, "error_code": drift.code},
        )
        await self.db.execute(
            update(DataRoom)
            .where(DataRoom.id == room_id)
            .values(
                document_count=(
                    select(func.count(DocumentNode.id))
                    .where(DocumentNode.data_room_id == room_id)
                    .scalar_subquery()
                ),
                total_size_bytes=(
                    select(func.coalesce(func.sum(DocumentNode.size_bytes), 0))
                    .where(DocumentNode.data_room_id == room_id)
                    .scalar_subquery()
                ),
            )
            .execution_options(synchronize_session=False),
        )
        await self.db.commit()
        return report

    async def reconcile_all(self) -> list[ReconcileReport]:
        """Reconcile every room; returns only the reports that found drift."""
        room_ids = (await self.db.execute(select(DataRoom.id))).scalars().all()
        drifted = []
        for room_id in room_ids:
            report = await self.reconcile_room(room_id)
            if report is not None and report.drifted:
                drifted.append(report)
        return drifted
