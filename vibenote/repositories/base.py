"""
Base repository with common MongoDB operations.
"""
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional
import logging

from vibenote.config.settings import get_settings

logger = logging.getLogger(__name__)


class BaseRepository:
    """Owns the MongoDB connection shared by all repositories."""

    def __init__(self):
        self.settings = get_settings()
        self.client: Optional[AsyncIOMotorClient] = None
        self.db: Optional[AsyncIOMotorDatabase] = None

    async def connect(self) -> None:
        """Establish connection to MongoDB and make sure indexes exist."""
        try:
            self.client = AsyncIOMotorClient(self.settings.mongodb_uri)
            self.db = self.client[self.settings.mongodb_database]
            await self.client.admin.command('ping')
            logger.info(f"Connected to MongoDB: {self.settings.mongodb_database}")
        except Exception as e:
            logger.error(f"Failed to connect to MongoDB: {e}")
            raise

        await self._ensure_indexes()

    async def _ensure_indexes(self) -> None:
        s = self.settings
        await self.db[s.chats_collection].create_index([("user_id", 1), ("created_at", -1)])
        await self.db[s.messages_collection].create_index([("chat_id", 1), ("created_at", 1)])
        await self.db[s.messages_collection].create_index("user_id")
        await self.db[s.flashcards_collection].create_index("chat_id", unique=True)
        await self.db[s.flashcards_collection].create_index("user_id")
        await self.db[s.documents_collection].create_index([("user_id", 1), ("uploaded_at", -1)])
        await self.db[s.videos_collection].create_index([("user_id", 1), ("created_at", -1)])
        await self.db[s.upload_slots_collection].create_index("expires_at", expireAfterSeconds=0)
        logger.info("MongoDB indexes ensured")

    async def disconnect(self) -> None:
        """Close MongoDB connection."""
        if self.client:
            self.client.close()
            logger.info("Disconnected from MongoDB")

    @property
    def is_connected(self) -> bool:
        """Check if connected to MongoDB."""
        return self.client is not None and self.db is not None
