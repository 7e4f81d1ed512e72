"""
API router for media attached to products (2D images, 3D models).

Uploads are admitted by the MediaRegistry against the global storage quota
before anything is written to disk. Files are served by the static mount
under /uploads, not by this router.
"""

import logging
import os

from fastapi import APIRouter, Depends, File, Form, Response, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from models.media_reference import MediaReferenceDTO, StorageStatsDTO
from services.media import MediaRegistry
from utils.admin_auth import AdminIdentity
from web.dependencies import get_session, get_media_registry, require_admin

logger = logging.getLogger(__name__)

media_router = APIRouter(prefix="/api", tags=["media"])


def _upload_size(file: UploadFile) -> int:
    # The multipart parser has already spooled the body; measure it without reading
    if file.size is not None:
        return file.size
    file.file.seek(0, os.SEEK_END)
    size = file.file.tell()
    file.file.seek(0)
    return size


@media_router.get("/products/{item_id}/media", response_model=list[MediaReferenceDTO])
async def list_product_media(
    item_id: int,
    session: AsyncSession = Depends(get_session),
    media_registry: MediaRegistry = Depends(get_media_registry),
):
    return await media_registry.list_for_item(item_id, session)


@media_router.post("/products/{item_id}/media", response_model=MediaReferenceDTO,
                   status_code=status.HTTP_201_CREATED)
async def upload_product_media(
    item_id: int,
    file: UploadFile = File(...),
    kind: str = Form(...),
    session: AsyncSession = Depends(get_session),
    media_registry: MediaRegistry = Depends(get_media_registry),
    admin: AdminIdentity = Depends(require_admin),
):
    """
    Attach an uploaded file to a product.

    Request (multipart/form-data):
        file: the image or model file
        kind: "image" or "model"

    Returns:
        201: The media reference including its public URL
        400: kind is not image or model
        404: Product does not exist
        413: The file would push total usage over the storage limit
    """
    media = await media_registry.admit_stream(
        item_id=item_id,
        kind=kind,
        source=file.file,
        byte_size=_upload_size(file),
        filename=file.filename,
        content_type=file.content_type,
        session=session,
    )
    logger.info(f"Admin {admin.admin_id} uploaded {media.kind} {media.id} for item {item_id}")
    return media


@media_router.delete("/media/{media_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_media(
    media_id: int,
    session: AsyncSession = Depends(get_session),
    media_registry: MediaRegistry = Depends(get_media_registry),
    admin: AdminIdentity = Depends(require_admin),
):
    await media_registry.release(media_id, session)
    logger.info(f"Admin {admin.admin_id} deleted media {media_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@media_router.get("/admin/storage", response_model=StorageStatsDTO)
async def get_storage_stats(
    session: AsyncSession = Depends(get_session),
    media_registry: MediaRegistry = Depends(get_media_registry),
    admin: AdminIdentity = Depends(require_admin),
):
    """Quota usage as recorded in the database, with the actual disk usage alongside."""
    return await media_registry.storage_stats(session)
