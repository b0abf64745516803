"""Maintenance — counter reconciliation, promotion retry and scratch-file GC.

Invariants:
    - Scratch files referenced by any node's temp_storage_path are never removed
    - Unreferenced files younger than the grace period are kept (uploads in flight)
    - Each cycle step runs in its own session; one failing step does not skip the rest
    - stop() cancels the loop task and waits for it
"""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable

from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.core.repository_protocols import ContentStore
from dataroom.infrastructure.upload_receiver import TemporaryUploadReceiver
from dataroom.services.promotion import PromotionOutcome, PromotionPipeline
from dataroom.services.statistics_tracker import ReconcileReport, StatisticsTracker
from dataroom.services.tree_store import TreeStore

logger = logging.getLogger(__name__)

# Returns an async context manager yielding a session (db_manager.session)
SessionProvider = Callable[[], object]


@dataclass
class MaintenanceReport:
    reconciled: list[ReconcileReport] = field(default_factory=list)
    promotions: list[PromotionOutcome] = field(default_factory=list)
    orphans_removed: list[Path] = field(default_factory=list)


async def collect_orphaned_uploads(
    db: AsyncSession,
    receiver: TemporaryUploadReceiver,
    grace_seconds: int,
    now: datetime | None = None,
) -> list[Path]:
    """Delete scratch files no node references and older than the grace period."""
    now = now or datetime.now(timezone.utc)
    cutoff = now - timedelta(seconds=grace_seconds)
    referenced = await TreeStore(db).referenced_temp_names()
    removed = []
    for entry in await receiver.list_entries():
        if entry.path.name in referenced or entry.modified_at > cutoff:
            continue
        await receiver.discard(entry.path)
        removed.append(entry.path)
    if removed:
        logger.info(
            f"Removed {len(removed)} orphaned scratch file(s)",
            extra={"removed": len(removed)},
        )
    return removed


async def run_maintenance_cycle(
    session_provider: SessionProvider,
    receiver: TemporaryUploadReceiver,
    store: ContentStore | None,
    *,
    grace_seconds: int,
    promotion_batch_size: int,
) -> MaintenanceReport:
    report = MaintenanceReport()

    try:
        async with session_provider() as db:
            report.reconciled = await StatisticsTracker(db).reconcile_all()
    except Exception as e:
        logger.exception(
            f"Reconciliation failed: {e}",
            extra={"error_code": getattr(e, "code", None)},
        )

    if store is not None:
        try:
            async with session_provider() as db:
                report.promotions = await PromotionPipeline(
                    db, store, receiver,
                ).promote_pending(promotion_batch_size)
        except Exception as e:
            logger.exception(
                f"Promotion retry failed: {e}",
                extra={"error_code": getattr(e, "code", None)},
            )

    try:
        async with session_provider() as db:
            report.orphans_removed = await collect_orphaned_uploads(
                db, receiver, grace_seconds,
            )
    except Exception as e:
        logger.exception(f"Scratch cleanup failed: {e}")

    return report


class MaintenanceLoop:
    """Background task running run_maintenance_cycle every interval_seconds."""

    def __init__(
        self,
        session_provider: SessionProvider,
        receiver: TemporaryUploadReceiver,
        store: ContentStore | None,
        *,
        interval_seconds: int,
        grace_seconds: int,
        promotion_batch_size: int,
    ):
        self.session_provider = session_provider
        self.receiver = receiver
        self.store = store
        self.interval_seconds = interval_seconds
        self.grace_seconds = grace_seconds
        self.promotion_batch_size = promotion_batch_size
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="dataroom-maintenance")
        logger.info(f"Maintenance loop started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        try:
            await self._task
        except asyncio.CancelledError:
            pass
        self._task = None
        logger.info("Maintenance loop stopped")

    async def run_once(self) -> MaintenanceReport:
        return await run_maintenance_cycle(
            self.session_provider, self.receiver, self.store,
            grace_seconds=self.grace_seconds,
            promotion_batch_size=self.promotion_batch_size,
        )

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval_seconds)
            try:
                await self.run_once()
            except Exception as e:
                logger.exception(f"Maintenance cycle crashed: {e}")
