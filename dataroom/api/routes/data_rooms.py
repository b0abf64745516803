"""Data Room Routes — room CRUD and lookups by external listing/asset id.

Invariants:
    - Every route requires a caller identity (X-User-Id)
    - Reads embed the room's documents, newest first
    - Lookups by listing/asset id return null rather than 404 when nothing matches
"""

import logging

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.api.dependencies import get_caller, get_upload_receiver
from dataroom.core.domain_types import CallerIdentity, DataRoomStatus
from dataroom.core.errors import DomainValidationError
from dataroom.infrastructure.database import get_db
from dataroom.infrastructure.upload_receiver import TemporaryUploadReceiver
from dataroom.schemas.base import upper_enum_input
from dataroom.schemas.data_room import (
    DataRoomCreate, DataRoomResponse, DataRoomUpdate,
    DataRoomWithDocumentsResponse,
)
from dataroom.services.room_lifecycle import RoomFilters, RoomLifecycleManager

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/data-rooms", tags=["data-rooms"])


def _parse_status(value: str | None) -> DataRoomStatus | None:
    if value is None or not value.strip():
        return None
    try:
        return DataRoomStatus(upper_enum_input(value))
    except ValueError:
        raise DomainValidationError(f"Unknown status {value!r}", "status")


@router.post(
    "", response_model=DataRoomResponse, status_code=status.HTTP_201_CREATED,
)
async def create_data_room(
    body: DataRoomCreate,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    room = await RoomLifecycleManager(db).create(
        caller,
        name=body.name,
        external_asset_id=body.asset_id,
        external_listing_id=body.listing_id,
        tier=body.tier,
        access=body.access,
    )
    return DataRoomResponse.from_room(room)


@router.get("", response_model=list[DataRoomWithDocumentsResponse])
async def list_data_rooms(
    listing_id: str | None = Query(None, alias="listingId"),
    asset_id: str | None = Query(None, alias="assetId"),
    room_status: str | None = Query(None, alias="status"),
    user_id: str | None = Query(None, alias="userId"),
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    filters = RoomFilters(
        listing_id=listing_id,
        asset_id=asset_id,
        status=_parse_status(room_status),
        user_id=user_id,
    )
    rooms = await RoomLifecycleManager(db).list_rooms(caller, filters)
    return [DataRoomWithDocumentsResponse.from_room(r) for r in rooms]


@router.get(
    "/listing/{listing_id}",
    response_model=DataRoomWithDocumentsResponse | None,
)
async def get_data_room_by_listing(
    listing_id: str,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    room = await RoomLifecycleManager(db).get_by_external_listing(caller, listing_id)
    return DataRoomWithDocumentsResponse.from_room(room) if room else None


@router.get(
    "/asset/{asset_id}",
    response_model=DataRoomWithDocumentsResponse | None,
)
async def get_data_room_by_asset(
    asset_id: str,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    room = await RoomLifecycleManager(db).get_by_external_asset(caller, asset_id)
    return DataRoomWithDocumentsResponse.from_room(room) if room else None


@router.get("/{room_id}", response_model=DataRoomWithDocumentsResponse)
async def get_data_room(
    room_id: str,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    room = await RoomLifecycleManager(db).get_by_id(caller, room_id)
    return DataRoomWithDocumentsResponse.from_room(room)


@router.patch("/{room_id}", response_model=DataRoomWithDocumentsResponse)
async def update_data_room(
    room_id: str,
    body: DataRoomUpdate,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
):
    room = await RoomLifecycleManager(db).update(caller, room_id, body.changes())
    return DataRoomWithDocumentsResponse.from_room(room)


@router.delete("/{room_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_data_room(
    room_id: str,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    receiver: TemporaryUploadReceiver = Depends(get_upload_receiver),
):
    temp_paths = await RoomLifecycleManager(db).delete(caller, room_id)
    for path in temp_paths:
        await receiver.discard(path)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
