"""Document Routes — multipart upload, folder creation and node deletion.

Invariants:
    - Upload accepts exactly one file part named "file"; a missing part is a 400
    - Bad folderId -> 400 FOLDER_NOT_FOUND; foreign or absent room -> 404
    - Oversized uploads -> 413 (middleware on declared length, receiver while streaming)
    - The response never carries the server-side scratch path
"""

import logging

from fastapi import (
    APIRouter, Depends, File, Form, Response, UploadFile, status,
)
from sqlalchemy.ext.asyncio import AsyncSession

from dataroom.api.dependencies import get_caller, get_upload_receiver
from dataroom.core.domain_types import CallerIdentity
from dataroom.infrastructure.content_store_client import get_content_store
from dataroom.infrastructure.database import get_db
from dataroom.infrastructure.upload_receiver import TemporaryUploadReceiver
from dataroom.schemas.document import DocumentResponse, FolderCreate
from dataroom.services.document_upload import DocumentService
from dataroom.services.promotion import PromotionPipeline

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/data-rooms/{room_id}", tags=["documents"])


def _service(db, receiver, store) -> DocumentService:
    promotion = PromotionPipeline(db, store, receiver) if store is not None else None
    return DocumentService(db, receiver, promotion)


@router.post(
    "/documents",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def upload_document(
    room_id: str,
    file: UploadFile | None = File(None),
    name: str | None = Form(None),
    folder_id: str | None = Form(None, alias="folderId"),
    description: str | None = Form(None),
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    receiver: TemporaryUploadReceiver = Depends(get_upload_receiver),
    store=Depends(get_content_store),
):
    service = _service(db, receiver, store)
    node = await service.upload(
        caller,
        room_id,
        file,
        file.filename if file is not None else None,
        file.content_type if file is not None else None,
        name=name,
        folder_id=folder_id,
        description=description,
    )
    return DocumentResponse.from_node(node)


@router.post(
    "/folders",
    response_model=DocumentResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_folder(
    room_id: str,
    body: FolderCreate,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    receiver: TemporaryUploadReceiver = Depends(get_upload_receiver),
):
    node = await DocumentService(db, receiver).create_folder(
        caller, room_id, body.name, body.folder_id, body.description,
    )
    return DocumentResponse.from_node(node)


@router.delete(
    "/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_document(
    room_id: str,
    document_id: str,
    caller: CallerIdentity = Depends(get_caller),
    db: AsyncSession = Depends(get_db),
    receiver: TemporaryUploadReceiver = Depends(get_upload_receiver),
):
    await DocumentService(db, receiver).delete(caller, room_id, document_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
