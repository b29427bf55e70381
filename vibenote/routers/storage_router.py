"""
Blob storage router.

Uploads are accepted only against a one-time slot URL handed out by the
persistence gateway; downloads are public by storage id.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response

from vibenote.controllers import StorageController
from vibenote.core.dependencies import get_storage_controller
from vibenote.schemas import StorageUploadResponse

router = APIRouter(prefix="/api/storage", tags=["Storage"])


@router.post("/upload/{token}", response_model=StorageUploadResponse)
async def upload_blob(
    token: str,
    request: Request,
    controller: StorageController = Depends(get_storage_controller),
):
    """Store the raw request body (up to the size limit); answers with `{"storageId": ...}`."""
    data = await controller.read_body(request.stream(), request.headers.get("content-length"))
    return await controller.accept_upload(token, data, request.headers.get("content-type", ""))


@router.get("/{storage_id}")
async def download_blob(
    storage_id: str,
    controller: StorageController = Depends(get_storage_controller),
):
    data, content_type = await controller.fetch(storage_id)
    return Response(content=data, media_type=content_type, headers={"Cache-Control": "private, max-age=86400"})
