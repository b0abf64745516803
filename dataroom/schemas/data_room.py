"""Data Room Schemas — create/update bodies and room responses.

Invariants:
    - name: stripped, non-empty on create and on update when supplied
    - tier/access/status accept any letter case, respond upper-case
    - DataRoomUpdate distinguishes "absent" from "explicit null": only assetId and
      listingId may be nulled (unlinking); the rest reject null
    - totalSize is rendered as a decimal string (values may exceed 2^53)
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator, model_validator

from dataroom.core.domain_types import DataRoomAccess, DataRoomStatus, DataRoomTier
from dataroom.models.data_room import DataRoom
from dataroom.schemas.base import CamelModel, upper_enum_input
from dataroom.schemas.document import DocumentResponse


def _strip_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("name cannot be empty or whitespace")
    return v


class DataRoomCreate(CamelModel):
    name: str = Field(min_length=1, max_length=500)
    listing_id: str | None = Field(None, max_length=255)
    asset_id: str | None = Field(None, max_length=255)
    tier: DataRoomTier | None = None
    access: DataRoomAccess | None = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_name(v)

    @field_validator("tier", "access", mode="before")
    @classmethod
    def normalize_enum(cls, v):
        return upper_enum_input(v)


# Wire field -> DataRoom column
_UPDATE_COLUMNS = {
    "name": "name",
    "tier": "tier",
    "access": "access",
    "status": "status",
    "asset_id": "external_asset_id",
    "listing_id": "external_listing_id",
}
_NON_NULLABLE = ("name", "tier", "access", "status")


class DataRoomUpdate(CamelModel):
    """Partial update; only fields present in the body are applied."""
    name: str | None = Field(None, min_length=1, max_length=500)
    tier: DataRoomTier | None = None
    access: DataRoomAccess | None = None
    status: DataRoomStatus | None = None
    asset_id: str | None = Field(None, max_length=255)
    listing_id: str | None = Field(None, max_length=255)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return _strip_name(v)

    @field_validator("tier", "access", "status", mode="before")
    @classmethod
    def normalize_enum(cls, v):
        return upper_enum_input(v)

    @model_validator(mode="after")
    def reject_null_required(self):
        for field in _NON_NULLABLE:
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict:
        """Supplied fields keyed by DataRoom column name."""
        return {
            _UPDATE_COLUMNS[field]: getattr(self, field)
            for field in self.model_fields_set
        }


class DataRoomResponse(CamelModel):
    id: UUID
    name: str
    user_id: str
    organization_id: str | None
    asset_id: str | None
    listing_id: str | None
    tier: DataRoomTier
    access: DataRoomAccess
    status: DataRoomStatus
    document_count: int
    total_size: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_room(cls, room: DataRoom) -> "DataRoomResponse":
        return cls(**_room_fields(room))


class DataRoomWithDocumentsResponse(DataRoomResponse):
    documents: list[DocumentResponse] = []

    @classmethod
    def from_room(cls, room: DataRoom) -> "DataRoomWithDocumentsResponse":
        return cls(
            **_room_fields(room),
            documents=[DocumentResponse.from_node(n) for n in room.documents],
        )


def _room_fields(room: DataRoom) -> dict:
    return {
        "id": room.id,
        "name": room.name,
        "user_id": room.owner_user_id,
        "organization_id": room.owner_organization_id,
        "asset_id": room.external_asset_id,
        "listing_id": room.external_listing_id,
        "tier": room.tier,
        "access": room.access,
        "status": room.status,
        "document_count": room.document_count,
        "total_size": str(room.total_size_bytes),
        "created_at": room.created_at,
        "updated_at": room.updated_at,
    }
