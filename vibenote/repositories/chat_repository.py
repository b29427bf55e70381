"""
Chat repository for database operations.
"""
from typing import Optional, List
import logging
import re
import uuid
from datetime import datetime

from vibenote.schemas import Chat

logger = logging.getLogger(__name__)


class ChatRepository:
    """Repository for chat CRUD operations."""

    def __init__(self, db):
        self.db = db
        self.settings = None

    def set_settings(self, settings):
        self.settings = settings

    @property
    def collection(self):
        return self.db[self.settings.chats_collection]

    @staticmethod
    def _to_chat(doc: dict) -> Chat:
        doc["chat_id"] = doc.pop("_id")
        return Chat(**doc)

    async def create(self, user_id: str, title: str, chat_id: Optional[str] = None) -> Chat:
        """Create a new chat."""
        chat = Chat(
            chat_id=chat_id or f"chat_{uuid.uuid4().hex[:12]}",
            user_id=user_id,
            title=title,
            created_at=datetime.utcnow(),
        )
        await self.collection.insert_one({
            "_id": chat.chat_id,
            **chat.model_dump(exclude={"chat_id"})
        })
        logger.info(f"Created chat: {chat.chat_id} for user: {user_id}")
        return chat

    async def get_by_id(self, chat_id: str) -> Optional[Chat]:
        """Get a chat by ID."""
        doc = await self.collection.find_one({"_id": chat_id})
        return self._to_chat(doc) if doc else None

    async def get_all_by_user(self, user_id: str, limit: Optional[int] = None) -> List[Chat]:
        """List a user's chats, newest first."""
        cursor = self.collection.find({"user_id": user_id}).sort("created_at", -1)
        if limit:
            cursor = cursor.limit(limit)
        return [self._to_chat(doc) async for doc in cursor]

    async def search(self, user_id: str, term: str) -> List[Chat]:
        """Case-insensitive substring search over a user's chat titles."""
        cursor = self.collection.find({
            "user_id": user_id,
            "title": {"$regex": re.escape(term), "$options": "i"},
        })
        return [self._to_chat(doc) async for doc in cursor]

    async def update_title(self, chat_id: str, title: str) -> bool:
        """Overwrite a chat's title."""
        result = await self.collection.update_one(
            {"_id": chat_id},
            {"$set": {"title": title}}
        )
        return result.matched_count > 0

    async def delete(self, chat_id: str) -> bool:
        """Delete a chat (messages are removed by the caller)."""
        result = await self.collection.delete_one({"_id": chat_id})
        if result.deleted_count > 0:
            logger.info(f"Deleted chat: {chat_id}")
            return True
        return False
