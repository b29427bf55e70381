"""
Library controller - PDF uploads to the user's library and image retrieval.
"""
from typing import List
from pathlib import Path
import logging
import uuid

from vibenote.repositories import DocumentRepository, StorageRepository
from vibenote.schemas import (
    DocumentUploadResponse,
    IngestStatus,
    LibraryDocument,
    RetrievalResult,
    UploadedFileInfo,
)
from vibenote.services.library_client import LibraryClient
from vibenote.utils.exceptions import DocumentNotFoundError, ExternalServiceError, ValidationError

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


class LibraryController:
    """Stores uploaded documents and hands them to the library service."""

    def __init__(
        self,
        document_repo: DocumentRepository,
        storage_repo: StorageRepository,
        library_client: LibraryClient,
    ):
        self.document_repo = document_repo
        self.storage_repo = storage_repo
        self.library = library_client

    @staticmethod
    def _validate(filename: str, content_type: str) -> None:
        if content_type != PDF_CONTENT_TYPE and not filename.lower().endswith(".pdf"):
            raise ValidationError("Only PDF files are supported")

    async def upload_document(
        self,
        user_id: str,
        filename: str,
        content_type: str,
        data: bytes,
    ) -> DocumentUploadResponse:
        """
        Store a PDF and ingest it.

        The upload succeeds once the file is stored; an ingest failure marks
        the document as failed and is reported in the message only.
        """
        self._validate(filename, content_type)
        if not data:
            raise ValidationError("Uploaded file is empty")

        storage_id = await self.storage_repo.store(data, PDF_CONTENT_TYPE, filename=filename)
        document = await self.document_repo.create(LibraryDocument(
            document_id=f"doc_{uuid.uuid4().hex[:12]}",
            user_id=user_id,
            filename=Path(filename).stem,
            original_name=filename,
            file_type=PDF_CONTENT_TYPE,
            file_size=len(data),
            storage_id=storage_id,
            file_url=self.storage_repo.get_url(storage_id),
        ))

        await self.document_repo.update_ingest_status(document.document_id, IngestStatus.PROCESSING)
        try:
            await self.library.ingest(user_id, document.file_url)
        except ExternalServiceError as e:
            logger.error(f"Ingest failed for document {document.document_id}: {e.message} {e.details or ''}")
            await self.document_repo.update_ingest_status(
                document.document_id, IngestStatus.FAILED, error=e.details or e.message
            )
            message = "File uploaded successfully, but processing failed. It will not appear in library search."
        else:
            await self.document_repo.update_ingest_status(document.document_id, IngestStatus.COMPLETED)
            message = "File uploaded and processed successfully"

        return DocumentUploadResponse(
            success=True,
            document_id=document.document_id,
            message=message,
            files=[UploadedFileInfo(name=filename, type=PDF_CONTENT_TYPE, size=len(data))],
        )

    async def list_documents(self, user_id: str) -> List[LibraryDocument]:
        return await self.document_repo.list_by_user(user_id)

    async def delete_document(self, document_id: str, user_id: str) -> None:
        document = await self.document_repo.get_by_id(document_id)
        if not document or document.user_id != user_id:
            raise DocumentNotFoundError(document_id)
        await self.storage_repo.delete(document.storage_id)
        await self.document_repo.delete(document_id)

    async def retrieve_images(self, query: str, user_id: str) -> RetrievalResult:
        return await self.library.retrieve_images(query, user_id)
