"""
Message repository for database operations.
"""
from typing import Optional, List
import logging
import uuid
from datetime import datetime

from vibenote.schemas import ChatMessage

logger = logging.getLogger(__name__)


class MessageRepository:
    """Repository for chat messages. Messages are ordered by created_at."""

    def __init__(self, db):
        self.db = db
        self.settings = None

    def set_settings(self, settings):
        self.settings = settings

    @property
    def collection(self):
        return self.db[self.settings.messages_collection]

    @staticmethod
    def _to_message(doc: dict) -> ChatMessage:
        doc["message_id"] = doc.pop("_id")
        return ChatMessage(**doc)

    async def add(
        self,
        chat_id: str,
        user_id: str,
        role: str,
        content: str,
        image_url: Optional[str] = None,
        related_images: Optional[List[str]] = None,
    ) -> ChatMessage:
        """Insert one message."""
        message = ChatMessage(
            message_id=f"msg_{uuid.uuid4().hex[:12]}",
            chat_id=chat_id,
            user_id=user_id,
            role=role,
            content=content,
            image_url=image_url,
            related_images=related_images or [],
            created_at=datetime.utcnow(),
        )
        await self.collection.insert_one({
            "_id": message.message_id,
            **message.model_dump(exclude={"message_id"})
        })
        return message

    async def get_by_id(self, message_id: str) -> Optional[ChatMessage]:
        doc = await self.collection.find_one({"_id": message_id})
        return self._to_message(doc) if doc else None

    async def list_by_chat(self, chat_id: str) -> List[ChatMessage]:
        """All messages of a chat in creation order."""
        cursor = self.collection.find({"chat_id": chat_id}).sort("created_at", 1)
        return [self._to_message(doc) async for doc in cursor]

    async def count_by_chat(self, chat_id: str) -> int:
        return await self.collection.count_documents({"chat_id": chat_id})

    async def latest(self, chat_id: str) -> Optional[ChatMessage]:
        """Most recent message of a chat."""
        doc = await self.collection.find_one({"chat_id": chat_id}, sort=[("created_at", -1)])
        return self._to_message(doc) if doc else None

    async def patch_image(self, message_id: str, content: str, image_url: str) -> bool:
        """Rewrite a message's text and attach a storage reference."""
        result = await self.collection.update_one(
            {"_id": message_id},
            {"$set": {"content": content, "image_url": image_url}}
        )
        return result.matched_count > 0

    async def update_content(self, message_id: str, content: str) -> bool:
        result = await self.collection.update_one(
            {"_id": message_id},
            {"$set": {"content": content}}
        )
        return result.matched_count > 0

    async def delete(self, message_id: str) -> bool:
        result = await self.collection.delete_one({"_id": message_id})
        return result.deleted_count > 0

    async def delete_by_chat(self, chat_id: str) -> int:
        """Delete every message of a chat; returns how many were removed."""
        result = await self.collection.delete_many({"chat_id": chat_id})
        logger.info(f"Deleted {result.deleted_count} messages from chat: {chat_id}")
        return result.deleted_count
