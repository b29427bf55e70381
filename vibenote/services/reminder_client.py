"""
Client for the calendar reminder service used by flashcards.
"""
from typing import Optional
import logging

import httpx

logger = logging.getLogger(__name__)


class ReminderClient:
    """Schedules spaced-repetition reminders for a flashcard deck."""

    def __init__(self, settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.http_timeout, transport=self._transport)

    async def create_flashcard_reminders(
        self,
        user_id: str,
        flashcard_title: str,
        chat_title: str,
        chat_id: str,
    ) -> bool:
        """Returns False when reminders could not be created (e.g. no calendar connected)."""
        if not self.settings.reminder_api_url:
            logger.warning("Reminder service not configured; skipping calendar reminders")
            return False

        async with self._get_client() as client:
            resp = await client.post(
                self.settings.reminder_api_url,
                json={
                    "user_id": user_id,
                    "title": flashcard_title,
                    "chat_title": chat_title,
                    "chat_id": chat_id,
                },
            )
        if not resp.is_success:
            logger.warning(f"Reminder service answered {resp.status_code} for chat {chat_id}")
        return resp.is_success
