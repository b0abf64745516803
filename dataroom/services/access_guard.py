"""Ownership/Access Guard — owner-scoped room loading.

Invariants:
    - Rooms are loaded filtered by id AND owner in one query (never load-then-compare)
    - Absent and foreign rooms raise the same ResourceNotFoundError
    - Pure read: no writes, no commits
    - Always returns fresh column values (populate_existing), since counters change
      through UPDATE statements that bypass the identity map
"""

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.core.domain_types import parse_uuid
from dataroom.core.errors import ErrorContext, ResourceNotFoundError
from dataroom.models.data_room import DataRoom


def room_not_found(room_id: object) -> ResourceNotFoundError:
    return ResourceNotFoundError(
        "Data room", str(room_id), ErrorContext(data_room_id=str(room_id)),
    )


async def authorize(
    db: AsyncSession, caller_user_id: str, room_id: str | UUID,
) -> DataRoom:
    """Return the caller's room or raise ResourceNotFoundError."""
    parsed = parse_uuid(room_id)
    if parsed is None:
        raise room_not_found(room_id)
    result = await db.execute(
        select(DataRoom)
        .where(DataRoom.id == parsed)
        .where(DataRoom.owner_user_id == caller_user_id)
        .execution_options(populate_existing=True),
    )
    room = result.scalar_one_or_none()
    if room is None:
        raise room_not_found(room_id)
    return room
