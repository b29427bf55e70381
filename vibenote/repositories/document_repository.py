"""
Library document repository.
"""
from typing import Optional, List
import logging

from vibenote.schemas import LibraryDocument, IngestStatus

logger = logging.getLogger(__name__)


class DocumentRepository:
    """Repository for library document records."""

    def __init__(self, db):
        self.db = db
        self.settings = None

    def set_settings(self, settings):
        self.settings = settings

    @property
    def collection(self):
        return self.db[self.settings.documents_collection]

    @staticmethod
    def _to_document(doc: dict) -> LibraryDocument:
        doc["document_id"] = doc.pop("_id")
        return LibraryDocument(**doc)

    async def create(self, document: LibraryDocument) -> LibraryDocument:
        await self.collection.insert_one({
            "_id": document.document_id,
            **document.model_dump(exclude={"document_id"})
        })
        logger.info(f"Created document: {document.document_id} ({document.original_name})")
        return document

    async def get_by_id(self, document_id: str) -> Optional[LibraryDocument]:
        doc = await self.collection.find_one({"_id": document_id})
        return self._to_document(doc) if doc else None

    async def list_by_user(self, user_id: str) -> List[LibraryDocument]:
        cursor = self.collection.find({"user_id": user_id}).sort("uploaded_at", -1)
        return [self._to_document(doc) async for doc in cursor]

    async def update_ingest_status(
        self,
        document_id: str,
        status: IngestStatus,
        error: Optional[str] = None
    ) -> bool:
        result = await self.collection.update_one(
            {"_id": document_id},
            {"$set": {"ingest_status": status.value, "ingest_error": error}}
        )
        return result.matched_count > 0

    async def delete(self, document_id: str) -> bool:
        result = await self.collection.delete_one({"_id": document_id})
        if result.deleted_count > 0:
            logger.info(f"Deleted document: {document_id}")
            return True
        return False
