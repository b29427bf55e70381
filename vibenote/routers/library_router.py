"""
Library API router - document uploads and image retrieval.
"""
from fastapi import APIRouter, Depends, File, UploadFile
from typing import List

from vibenote.controllers import LibraryController
from vibenote.core.auth import require_user_id
from vibenote.core.dependencies import get_library_controller
from vibenote.schemas import DocumentUploadResponse, LibraryDocument, RetrievalRequest, RetrievalResult
from vibenote.utils.exceptions import ValidationError

router = APIRouter(prefix="/api/library", tags=["Library"])


@router.post("/documents", response_model=DocumentUploadResponse, status_code=201)
async def upload_document(
    files: List[UploadFile] = File(default=[]),
    user_id: str = Depends(require_user_id),
    controller: LibraryController = Depends(get_library_controller),
):
    """
    Upload a single PDF to the caller's library.

    - **files**: exactly one PDF file
    """
    files = [f for f in files if f.filename]
    if not files:
        raise ValidationError("No file provided")
    if len(files) > 1:
        raise ValidationError("Please upload only one file at a time")

    upload = files[0]
    data = await upload.read()
    return await controller.upload_document(
        user_id=user_id,
        filename=upload.filename,
        content_type=upload.content_type or "",
        data=data,
    )


@router.get("/documents", response_model=List[LibraryDocument])
async def list_documents(
    user_id: str = Depends(require_user_id),
    controller: LibraryController = Depends(get_library_controller),
):
    return await controller.list_documents(user_id)


@router.delete("/documents/{document_id}")
async def delete_document(
    document_id: str,
    user_id: str = Depends(require_user_id),
    controller: LibraryController = Depends(get_library_controller),
):
    await controller.delete_document(document_id, user_id)
    return {"message": f"Document {document_id} deleted"}


@router.post("/retrieval", response_model=RetrievalResult)
async def retrieve_images(
    request: RetrievalRequest,
    user_id: str = Depends(require_user_id),
    controller: LibraryController = Depends(get_library_controller),
):
    """Images from the caller's library relevant to a query. Failures are reported in the body."""
    return await controller.retrieve_images(request.query, user_id)
