"""
Common schemas and enums used across the application.
"""
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class IngestStatus(str, Enum):
    """Library document ingestion status."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class VideoStatus(str, Enum):
    """Video generation status."""
    PENDING = "pending"
    GENERATING = "generating"
    COMPLETED = "completed"
    FAILED = "failed"


class StorageUploadResponse(BaseModel):
    """Response returned by a blob upload against an upload slot."""
    model_config = ConfigDict(populate_by_name=True)

    storage_id: str = Field(..., alias="storageId")
