"""
Library (document upload and image retrieval) schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from .common import IngestStatus


class LibraryDocument(BaseModel):
    """A PDF uploaded to the user's library."""
    document_id: str
    user_id: str
    filename: str
    original_name: str
    file_type: str
    file_size: int
    storage_id: str
    file_url: str
    uploaded_at: datetime = Field(default_factory=datetime.utcnow)
    ingest_status: IngestStatus = IngestStatus.PENDING
    ingest_error: Optional[str] = None


class UploadedFileInfo(BaseModel):
    name: str
    type: str
    size: int


class DocumentUploadResponse(BaseModel):
    """Response after a library upload."""
    success: bool
    document_id: str
    message: str
    files: List[UploadedFileInfo] = Field(default_factory=list)


class RetrievalRequest(BaseModel):
    """Request for library image retrieval."""
    query: str = Field(..., min_length=1)


class RetrievalMetadata(BaseModel):
    document_ids: List[str] = Field(default_factory=list)
    download_urls: List[str] = Field(default_factory=list)
    filenames: List[str] = Field(default_factory=list)


class RetrievalResult(BaseModel):
    """Outcome of a library retrieval call. Failures are values, not exceptions."""
    success: bool
    images: List[str] = Field(default_factory=list)
    metadata: Optional[RetrievalMetadata] = None
    error: Optional[str] = None
