"""Data Room Lifecycle Manager — create, list, look up, update and delete rooms.

Invariants:
    - Every query is filtered by the caller's user id
    - New rooms start INCOMPLETE with zero counters; tier/access take defaults when absent
    - update() touches only supplied fields and never the counters
    - delete() removes the room and all its nodes (ON DELETE CASCADE) in one statement
    - A blank name raises DomainValidationError on create and on update
    - Absent or foreign rooms raise ResourceNotFoundError; lookups by external id return None

Design Decisions:
    - userId list filter is intersected with ownership, never substituted for it
    - Reads return rooms with documents embedded (selectin on DataRoom.documents)
"""

import logging
from dataclasses import dataclass
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.core.domain_types import (
    CallerIdentity, DataRoomAccess, DataRoomStatus, DataRoomTier,
)
from dataroom.core.errors import DomainValidationError
from dataroom.models.data_room import DataRoom
from dataroom.models.document_node import DocumentNode
from dataroom.services.access_guard import authorize, room_not_found

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({
    "name", "tier", "access", "status",
    "external_asset_id", "external_listing_id",
})


@dataclass(frozen=True)
class RoomFilters:
    """Optional list filters, combined with AND."""
    listing_id: str | None = None
    asset_id: str | None = None
    status: DataRoomStatus | None = None
    user_id: str | None = None


def _enum_value(value):
    return value.value if isinstance(value, (DataRoomTier, DataRoomAccess, DataRoomStatus)) else value


def _require_name(name: str | None) -> str:
    name = (name or "").strip()
    if not name:
        raise DomainValidationError("Data room name is required", "name")
    return name


class RoomLifecycleManager:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        caller: CallerIdentity,
        name: str,
        external_asset_id: str | None = None,
        external_listing_id: str | None = None,
        tier: DataRoomTier | None = None,
        access: DataRoomAccess | None = None,
    ) -> DataRoom:
        name = _require_name(name)
        room = DataRoom(
            name=name,
            owner_user_id=caller.user_id,
            owner_organization_id=caller.organization_id,
            external_asset_id=external_asset_id,
            external_listing_id=external_listing_id,
            tier=(tier or DataRoomTier.SIMPLE).value,
            access=(access or DataRoomAccess.RESTRICTED).value,
            status=DataRoomStatus.INCOMPLETE.value,
            document_count=0,
            total_size_bytes=0,
        )
        self.db.add(room)
        await self.db.commit()
        logger.info(
            f"Created data room {name!r}",
            extra={"data_room_id": room.id, "user_id": caller.user_id},
        )
        return await authorize(self.db, caller.user_id, room.id)

    async def list_rooms(
        self, caller: CallerIdentity, filters: RoomFilters | None = None,
    ) -> list[DataRoom]:
        """Caller's rooms, newest first."""
        filters = filters or RoomFilters()
        if filters.user_id is not None and filters.user_id != caller.user_id:
            return []
        query = select(DataRoom).where(DataRoom.owner_user_id == caller.user_id)
        if filters.listing_id is not None:
            query = query.where(DataRoom.external_listing_id == filters.listing_id)
        if filters.asset_id is not None:
            query = query.where(DataRoom.external_asset_id == filters.asset_id)
        if filters.status is not None:
            query = query.where(DataRoom.status == filters.status.value)
        result = await self.db.execute(
            query.order_by(DataRoom.created_at.desc())
            .execution_options(populate_existing=True),
        )
        return list(result.scalars().all())

    async def get_by_id(self, caller: CallerIdentity, room_id: str | UUID) -> DataRoom:
        return await authorize(self.db, caller.user_id, room_id)

    async def get_by_external_listing(
        self, caller: CallerIdentity, listing_id: str,
    ) -> DataRoom | None:
        return await self._first_by(
            caller, DataRoom.external_listing_id == listing_id,
        )

    async def get_by_external_asset(
        self, caller: CallerIdentity, asset_id: str,
    ) -> DataRoom | None:
        return await self._first_by(
            caller, DataRoom.external_asset_id == asset_id,
        )

    async def _first_by(self, caller: CallerIdentity, criterion) -> DataRoom | None:
        # External ids are not unique; the newest room wins
        result = await self.db.execute(
            select(DataRoom)
            .where(DataRoom.owner_user_id == caller.user_id)
            .where(criterion)
            .order_by(DataRoom.created_at.desc())
            .limit(1)
            .execution_options(populate_existing=True),
        )
        return result.scalar_one_or_none()

    async def update(
        self, caller: CallerIdentity, room_id: str | UUID, changes: dict,
    ) -> DataRoom:
        """Apply a partial change set keyed by column name."""
        room = await authorize(self.db, caller.user_id, room_id)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Fields not updatable: {sorted(unknown)}")
        if not changes:
            return room
        if "name" in changes:
            changes = {**changes, "name": _require_name(changes["name"])}
        for field, value in changes.items():
            setattr(room, field, _enum_value(value))
        await self.db.commit()
        logger.info(
            f"Updated data room fields {sorted(changes)}",
            extra={"data_room_id": room.id, "user_id": caller.user_id},
        )
        return await authorize(self.db, caller.user_id, room.id)

    async def delete(self, caller: CallerIdentity, room_id: str | UUID) -> list[str]:
        """Delete the room; returns the scratch paths its nodes still held."""
        room = await authorize(self.db, caller.user_id, room_id)
        temp_paths = [
            path for path in (await self.db.execute(
                select(DocumentNode.temp_storage_path)
                .where(DocumentNode.data_room_id == room.id)
                .where(DocumentNode.temp_storage_path.is_not(None)),
            )).scalars().all() if path
        ]
        result = await self.db.execute(
            delete(DataRoom)
            .where(DataRoom.id == room.id)
            .where(DataRoom.owner_user_id == caller.user_id)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount == 0:
            raise room_not_found(room_id)
        await self.db.commit()
        self.db.expunge(room)
        logger.info(
            "Deleted data room",
            extra={"data_room_id": room.id, "user_id": caller.user_id},
        )
        return temp_paths
