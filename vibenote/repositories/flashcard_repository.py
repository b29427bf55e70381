"""
Flashcard deck repository. At most one deck exists per chat.
"""
from typing import Optional, List
import logging
import uuid
from datetime import datetime

from vibenote.schemas import Flashcard, FlashcardDeck

logger = logging.getLogger(__name__)


class FlashcardRepository:
    """Repository for flashcard decks."""

    def __init__(self, db):
        self.db = db
        self.settings = None

    def set_settings(self, settings):
        self.settings = settings

    @property
    def collection(self):
        return self.db[self.settings.flashcards_collection]

    @staticmethod
    def _to_deck(doc: dict) -> FlashcardDeck:
        doc["deck_id"] = doc.pop("_id")
        return FlashcardDeck(**doc)

    async def upsert(self, chat_id: str, user_id: str, flashcards: List[Flashcard]) -> FlashcardDeck:
        """Replace the chat's deck, creating it if needed."""
        now = datetime.utcnow()
        cards = [card.model_dump() for card in flashcards]

        existing = await self.collection.find_one({"chat_id": chat_id})
        if existing:
            await self.collection.update_one(
                {"_id": existing["_id"]},
                {"$set": {"flashcards": cards, "updated_at": now}}
            )
            logger.info(f"Updated flashcard deck {existing['_id']} for chat {chat_id}")
            existing.update(flashcards=cards, updated_at=now)
            return self._to_deck(existing)

        deck = FlashcardDeck(
            deck_id=f"deck_{uuid.uuid4().hex[:12]}",
            chat_id=chat_id,
            user_id=user_id,
            flashcards=flashcards,
            created_at=now,
            updated_at=now,
        )
        await self.collection.insert_one({
            "_id": deck.deck_id,
            **deck.model_dump(exclude={"deck_id"})
        })
        logger.info(f"Created flashcard deck {deck.deck_id} for chat {chat_id}")
        return deck

    async def get_by_chat(self, chat_id: str) -> Optional[FlashcardDeck]:
        doc = await self.collection.find_one({"chat_id": chat_id})
        return self._to_deck(doc) if doc else None

    async def get_by_id(self, deck_id: str) -> Optional[FlashcardDeck]:
        doc = await self.collection.find_one({"_id": deck_id})
        return self._to_deck(doc) if doc else None

    async def list_by_user(self, user_id: str) -> List[FlashcardDeck]:
        cursor = self.collection.find({"user_id": user_id}).sort("created_at", -1)
        return [self._to_deck(doc) async for doc in cursor]

    async def delete(self, deck_id: str) -> bool:
        result = await self.collection.delete_one({"_id": deck_id})
        return result.deleted_count > 0
