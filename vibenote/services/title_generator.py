"""
Chat title generation for a chat's first turn.
"""
import logging

from vibenote.utils.attachments import strip_images_marker

logger = logging.getLogger(__name__)

EMPTY_TITLE = "New Conversation"
FALLBACK_TITLE = "New Learning Session"


class TitleGenerator:
    """Derives a short title from the user's first message and stores it."""

    def __init__(self, llm_service, gateway):
        self.llm = llm_service
        self.gateway = gateway

    async def generate(self, chat_id: str, user_text: str) -> str:
        """
        Generate and persist a title. Never raises.

        Images are not considered; only the user's text is sent to the model.
        An empty model reply stores EMPTY_TITLE, any failure FALLBACK_TITLE.
        """
        text = strip_images_marker(user_text or "").strip()
        try:
            if not text:
                raise ValueError("No user text to derive a title from")
            title = await self.llm.generate_chat_title(text) or EMPTY_TITLE
        except Exception as e:
            logger.warning(f"Title generation failed for chat {chat_id}, using fallback: {e}")
            title = FALLBACK_TITLE

        try:
            await self.gateway.set_chat_title(chat_id, title)
            logger.info(f"Chat {chat_id} titled: {title}")
        except Exception as e:
            logger.error(f"Failed to store title for chat {chat_id}: {e}")

        return title
