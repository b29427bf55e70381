"""
Chat controller - conversation and message management outside the
streaming turn (sidebar listing, rename, history, message edits).
"""
from typing import List, Optional
import logging

from vibenote.repositories import ChatRepository, MessageRepository
from vibenote.schemas import (
    Chat,
    ChatCreate,
    ChatCreateResponse,
    ChatMessage,
    ChatMessageResponse,
    ChatPreview,
)
from vibenote.services.persistence import PersistenceGateway
from vibenote.utils.attachments import strip_images_marker
from vibenote.utils.exceptions import ChatNotFoundError, MessageNotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ChatController:
    """Chat and message CRUD scoped to the calling user."""

    def __init__(
        self,
        chat_repo: ChatRepository,
        message_repo: MessageRepository,
        gateway: PersistenceGateway,
        settings,
    ):
        self.chat_repo = chat_repo
        self.message_repo = message_repo
        self.gateway = gateway
        self.settings = settings

    async def _owned_chat(self, chat_id: str, user_id: str) -> Chat:
        chat = await self.chat_repo.get_by_id(chat_id)
        if not chat or chat.user_id != user_id:
            raise ChatNotFoundError(chat_id)
        return chat

    async def _owned_message(self, message_id: str, user_id: str) -> ChatMessage:
        message = await self.message_repo.get_by_id(message_id)
        if not message or message.user_id != user_id:
            raise MessageNotFoundError(message_id)
        return message

    def _to_response(self, message: ChatMessage) -> ChatMessageResponse:
        return ChatMessageResponse(
            **message.model_dump(),
            image_src=self.gateway.resolve_image(message.image_url),
        )

    # ── Chats ──

    async def create_chat(self, user_id: str, request: ChatCreate) -> ChatCreateResponse:
        """
        Create a chat, optionally seeding it with the user's first message.

        A seeded chat gets its title from the first turn; the placeholder
        title is kept until then.
        """
        title = (request.title or "").strip() or self.settings.default_chat_title
        chat = await self.chat_repo.create(user_id=user_id, title=title)

        message_id = None
        if request.first_message:
            message = await self.message_repo.add(
                chat_id=chat.chat_id,
                user_id=user_id,
                role="user",
                content=strip_images_marker(request.first_message),
                image_url=request.image_url,
            )
            message_id = message.message_id

        return ChatCreateResponse(chat_id=chat.chat_id, path=f"/chat/{chat.chat_id}", message_id=message_id)

    async def list_chats(self, user_id: str, limit: Optional[int] = None) -> List[Chat]:
        return await self.chat_repo.get_all_by_user(user_id, limit=limit)

    async def list_previews(self, user_id: str) -> List[ChatPreview]:
        """Chats with their latest message, most recently active first."""
        previews = []
        for chat in await self.chat_repo.get_all_by_user(user_id):
            latest = await self.message_repo.latest(chat.chat_id)
            count = await self.message_repo.count_by_chat(chat.chat_id)
            previews.append(ChatPreview(
                **chat.model_dump(),
                last_message=latest.content if latest else "No messages yet",
                last_message_time=latest.created_at if latest else chat.created_at,
                message_count=count,
            ))
        previews.sort(key=lambda p: p.last_message_time, reverse=True)
        return previews

    async def recent_chats(self, user_id: str) -> List[Chat]:
        return await self.chat_repo.get_all_by_user(user_id, limit=self.settings.recent_chats_limit)

    async def search_chats(self, user_id: str, term: str) -> List[Chat]:
        term = term.strip()
        if not term:
            return []
        return await self.chat_repo.search(user_id, term)

    async def get_chat(self, chat_id: str, user_id: str) -> Chat:
        return await self._owned_chat(chat_id, user_id)

    async def rename_chat(self, chat_id: str, user_id: str, title: str) -> Chat:
        chat = await self._owned_chat(chat_id, user_id)
        title = title.strip()
        if not title:
            raise ValidationError("Title must not be empty")
        await self.chat_repo.update_title(chat_id, title)
        chat.title = title
        return chat

    async def delete_chat(self, chat_id: str, user_id: str) -> int:
        """Delete a chat and its messages; returns the number of messages removed."""
        await self._owned_chat(chat_id, user_id)
        deleted = await self.message_repo.delete_by_chat(chat_id)
        await self.chat_repo.delete(chat_id)
        return deleted

    # ── Messages ──

    async def get_messages(self, chat_id: str, user_id: str) -> List[ChatMessageResponse]:
        await self._owned_chat(chat_id, user_id)
        messages = await self.message_repo.list_by_chat(chat_id)
        return [self._to_response(m) for m in messages]

    async def count_messages(self, chat_id: str, user_id: str) -> int:
        await self._owned_chat(chat_id, user_id)
        return await self.message_repo.count_by_chat(chat_id)

    async def clear_history(self, chat_id: str, user_id: str) -> int:
        """Remove all messages but keep the chat itself."""
        await self._owned_chat(chat_id, user_id)
        return await self.message_repo.delete_by_chat(chat_id)

    async def update_message(self, message_id: str, user_id: str, content: str) -> ChatMessageResponse:
        message = await self._owned_message(message_id, user_id)
        message.content = strip_images_marker(content)
        await self.message_repo.update_content(message_id, message.content)
        logger.info(f"Updated message {message_id}")
        return self._to_response(message)

    async def delete_message(self, message_id: str, user_id: str) -> None:
        await self._owned_message(message_id, user_id)
        await self.message_repo.delete(message_id)
        logger.info(f"Deleted message {message_id}")
