"""Document Schemas — node responses and folder creation.

Invariants:
    - size is a decimal string; storageState replaces the server-side scratch path,
      which is never exposed
"""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from dataroom.core.domain_types import StorageState
from dataroom.models.document_node import DocumentNode
from dataroom.schemas.base import CamelModel


class DocumentResponse(CamelModel):
    id: UUID
    data_room_id: UUID
    folder_id: UUID | None
    name: str
    original_name: str
    mime_type: str | None
    size: str
    storage_state: StorageState
    content_address: str | None
    content_url: str | None
    description: str | None
    metadata: dict | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_node(cls, node: DocumentNode) -> "DocumentResponse":
        return cls(
            id=node.id,
            data_room_id=node.data_room_id,
            folder_id=node.parent_folder_id,
            name=node.display_name,
            original_name=node.original_filename,
            mime_type=node.mime_type,
            size=str(node.size_bytes),
            storage_state=node.storage_state,
            content_address=node.content_address,
            content_url=node.content_url,
            description=node.description,
            metadata=node.node_metadata,
            created_at=node.created_at,
            updated_at=node.updated_at,
        )


class FolderCreate(CamelModel):
    name: str = Field(min_length=1, max_length=500)
    folder_id: str | None = None
    description: str | None = Field(None, max_length=5000)
