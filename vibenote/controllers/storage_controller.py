"""
Storage controller - receives uploads against one-time slots and serves blobs.
"""
from typing import AsyncIterator, Optional, Tuple
import logging

from vibenote.repositories import StorageRepository
from vibenote.schemas import StorageUploadResponse
from vibenote.utils.exceptions import PayloadTooLargeError, UploadSlotError, ValidationError

logger = logging.getLogger(__name__)


class StorageController:

    def __init__(self, storage_repo: StorageRepository, max_upload_bytes: int = 20 * 1024 * 1024):
        self.storage_repo = storage_repo
        self.max_upload_bytes = max_upload_bytes

    async def read_body(self, chunks: AsyncIterator[bytes], declared_length: Optional[str] = None) -> bytes:
        """Collect an upload body, stopping as soon as it passes the size limit."""
        if declared_length and declared_length.isdigit() and int(declared_length) > self.max_upload_bytes:
            raise PayloadTooLargeError(self.max_upload_bytes)
        data = bytearray()
        async for chunk in chunks:
            data.extend(chunk)
            if len(data) > self.max_upload_bytes:
                logger.warning(f"Upload rejected after {len(data)} bytes")
                raise PayloadTooLargeError(self.max_upload_bytes)
        return bytes(data)

    async def accept_upload(self, token: str, data: bytes, content_type: str) -> StorageUploadResponse:
        """Store one blob for a slot token. A token works once."""
        if len(data) > self.max_upload_bytes:
            raise PayloadTooLargeError(self.max_upload_bytes)
        if not await self.storage_repo.consume_upload_slot(token):
            raise UploadSlotError("Upload URL is invalid, expired or already used")
        if not data:
            raise ValidationError("Upload body is empty")
        storage_id = await self.storage_repo.store(data, content_type or "application/octet-stream")
        return StorageUploadResponse(storage_id=storage_id)

    async def fetch(self, storage_id: str) -> Tuple[bytes, str]:
        return await self.storage_repo.read(storage_id)
