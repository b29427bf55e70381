"""
Blob storage on MongoDB GridFS with one-time upload slots.

An upload slot is a short-lived token; the HTTP storage router accepts a
single binary upload per token and answers with the new storage id.
"""
from typing import Optional, Tuple
import logging
import uuid
from datetime import datetime, timedelta

from bson import ObjectId
from bson.errors import InvalidId
from gridfs.errors import NoFile
from motor.motor_asyncio import AsyncIOMotorGridFSBucket

from vibenote.utils.exceptions import BlobNotFoundError

logger = logging.getLogger(__name__)


class StorageRepository:
    """Repository for stored blobs and upload slots."""

    def __init__(self, db):
        self.db = db
        self.settings = None
        self._bucket: Optional[AsyncIOMotorGridFSBucket] = None

    def set_settings(self, settings):
        self.settings = settings

    @property
    def slots_collection(self):
        return self.db[self.settings.upload_slots_collection]

    @property
    def bucket(self) -> AsyncIOMotorGridFSBucket:
        if self._bucket is None:
            self._bucket = AsyncIOMotorGridFSBucket(self.db, bucket_name=self.settings.storage_bucket)
        return self._bucket

    @staticmethod
    def _object_id(storage_id: str) -> ObjectId:
        try:
            return ObjectId(storage_id)
        except (InvalidId, TypeError):
            raise BlobNotFoundError(storage_id)

    # ── Upload slots ──

    async def create_upload_slot(self) -> str:
        """Create a one-time upload token."""
        token = uuid.uuid4().hex
        now = datetime.utcnow()
        await self.slots_collection.insert_one({
            "_id": token,
            "used": False,
            "created_at": now,
            "expires_at": now + timedelta(seconds=self.settings.upload_slot_ttl_seconds),
        })
        return token

    async def consume_upload_slot(self, token: str) -> bool:
        """Atomically mark a slot as used. False if unknown, used or expired."""
        doc = await self.slots_collection.find_one_and_update(
            {"_id": token, "used": False, "expires_at": {"$gt": datetime.utcnow()}},
            {"$set": {"used": True}},
        )
        return doc is not None

    def upload_url(self, token: str) -> str:
        return f"{self.settings.public_base_url.rstrip('/')}/api/storage/upload/{token}"

    # ── Blobs ──

    async def store(self, data: bytes, content_type: str, filename: Optional[str] = None) -> str:
        """Store bytes and return the storage id."""
        file_id = await self.bucket.upload_from_stream(
            filename or uuid.uuid4().hex,
            data,
            metadata={"content_type": content_type},
        )
        logger.info(f"Stored blob {file_id} ({len(data)} bytes, {content_type})")
        return str(file_id)

    async def read(self, storage_id: str) -> Tuple[bytes, str]:
        """Return (bytes, content type) for a storage id."""
        try:
            grid_out = await self.bucket.open_download_stream(self._object_id(storage_id))
        except NoFile:
            raise BlobNotFoundError(storage_id)
        data = await grid_out.read()
        metadata = grid_out.metadata or {}
        return data, metadata.get("content_type", "application/octet-stream")

    async def delete(self, storage_id: str) -> bool:
        try:
            await self.bucket.delete(self._object_id(storage_id))
        except NoFile:
            return False
        logger.info(f"Deleted blob {storage_id}")
        return True

    def get_url(self, storage_id: str) -> str:
        """Fetchable URL for a storage id."""
        return f"{self.settings.public_base_url.rstrip('/')}/api/storage/{storage_id}"
