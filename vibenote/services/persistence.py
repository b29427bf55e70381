"""
Persistence gateway for the chat turn.

Thin async facade over the chat, message and storage repositories. Each
method is a single round trip to the store; there are no transactions.
Store failures are raised as PersistenceError so callers can decide whether
a failure is fatal for the turn.
"""
from typing import Awaitable, List, Optional, Tuple, TypeVar
import logging

import httpx
from pymongo.errors import DuplicateKeyError, PyMongoError

from vibenote.repositories import ChatRepository, MessageRepository, StorageRepository
from vibenote.schemas import Chat, ChatMessage
from vibenote.utils.attachments import strip_images_marker
from vibenote.utils.exceptions import ChatNotFoundError, PersistenceError
from vibenote.utils.images import decode_data_url, is_http_url, sniff_content_type

logger = logging.getLogger(__name__)

T = TypeVar("T")


class PersistenceGateway:
    """Store operations used by the turn orchestrator."""

    def __init__(
        self,
        chat_repo: ChatRepository,
        message_repo: MessageRepository,
        storage_repo: StorageRepository,
        settings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.chat_repo = chat_repo
        self.message_repo = message_repo
        self.storage_repo = storage_repo
        self.settings = settings
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.http_timeout, transport=self._transport)

    @staticmethod
    async def _run(operation: str, awaitable: Awaitable[T]) -> T:
        try:
            return await awaitable
        except PyMongoError as e:
            logger.error(f"Store operation '{operation}' failed: {e}")
            raise PersistenceError(f"Failed to {operation}", str(e)) from e

    # ── Chats ──

    async def ensure_chat(self, chat_id: str, user_id: str) -> Chat:
        """
        Return the chat, creating it with the placeholder title if it does not
        exist yet. A chat owned by someone else is reported as missing.

        Two first turns racing on a new chat id both succeed: the insert that
        loses on the `_id` index re-reads the winner's chat.
        """
        chat = await self._run("load chat", self.chat_repo.get_by_id(chat_id))
        if chat is None:
            try:
                return await self.chat_repo.create(
                    user_id=user_id, title=self.settings.default_chat_title, chat_id=chat_id
                )
            except DuplicateKeyError:
                logger.info(f"Chat {chat_id} was created concurrently, reloading")
                chat = await self._run("load chat", self.chat_repo.get_by_id(chat_id))
            except PyMongoError as e:
                logger.error(f"Store operation 'create chat' failed: {e}")
                raise PersistenceError("Failed to create chat", str(e)) from e
        if chat is None or chat.user_id != user_id:
            raise ChatNotFoundError(chat_id)
        return chat

    async def set_chat_title(self, chat_id: str, title: str) -> None:
        """Unconditional title overwrite."""
        updated = await self._run("update chat title", self.chat_repo.update_title(chat_id, title))
        if not updated:
            logger.warning(f"Title update matched no chat: {chat_id}")

    # ── Messages ──

    async def count_messages(self, chat_id: str) -> int:
        return await self._run("count messages", self.message_repo.count_by_chat(chat_id))

    async def list_messages(self, chat_id: str) -> List[ChatMessage]:
        return await self._run("list messages", self.message_repo.list_by_chat(chat_id))

    async def append_message(
        self,
        chat_id: str,
        user_id: str,
        role: str,
        text: str,
        image_ref: Optional[str] = None,
        related_images: Optional[List[str]] = None,
    ) -> str:
        """Insert one message and return its id. The images-attached marker is stripped."""
        message = await self._run(
            "append message",
            self.message_repo.add(
                chat_id=chat_id,
                user_id=user_id,
                role=role,
                content=strip_images_marker(text),
                image_url=image_ref,
                related_images=related_images,
            ),
        )
        logger.info(f"Saved {role} message {message.message_id} in chat {chat_id}")
        return message.message_id

    async def patch_message_image(self, message_id: str, text: str, storage_ref: str) -> None:
        """Rewrite a stored message's text and attach a storage reference."""
        patched = await self._run(
            "patch message image",
            self.message_repo.patch_image(message_id, strip_images_marker(text), storage_ref),
        )
        if not patched:
            logger.warning(f"Image patch matched no message: {message_id}")

    # ── Blob storage ──

    async def request_upload_slot(self) -> str:
        """Obtain a one-time upload URL."""
        token = await self._run("create upload slot", self.storage_repo.create_upload_slot())
        return self.storage_repo.upload_url(token)

    async def upload_blob(self, upload_url: str, data: bytes, content_type: str) -> str:
        """POST bytes to an upload URL and return the storage id it answers with."""
        try:
            async with self._get_client() as client:
                resp = await client.post(upload_url, content=data, headers={"Content-Type": content_type})
                resp.raise_for_status()
                return resp.json()["storageId"]
        except (httpx.HTTPError, KeyError, ValueError) as e:
            raise PersistenceError("Blob upload failed", str(e)) from e

    async def load_image(self, image_url: str) -> Tuple[bytes, str]:
        """Bytes and content type of a base64 data URL or an http(s) image URL."""
        if is_http_url(image_url):
            try:
                async with self._get_client() as client:
                    resp = await client.get(image_url)
                    resp.raise_for_status()
            except httpx.HTTPError as e:
                raise PersistenceError("Could not fetch image", str(e)) from e
            content_type = resp.headers.get("content-type") or sniff_content_type(resp.content)
            return resp.content, content_type

        try:
            data, mime = decode_data_url(image_url)
        except ValueError as e:
            raise PersistenceError("Could not decode image", str(e)) from e
        if mime == "application/octet-stream":
            mime = sniff_content_type(data)
        return data, mime

    async def store_image(self, image_url: str) -> str:
        """Move an image into durable storage through a one-time upload slot."""
        data, content_type = await self.load_image(image_url)
        upload_url = await self.request_upload_slot()
        storage_id = await self.upload_blob(upload_url, data, content_type)
        logger.info(f"Uploaded image to storage: {storage_id}")
        return storage_id

    def resolve_image(self, image_ref: Optional[str]) -> Optional[str]:
        """Turn a stored image reference into a fetchable URL."""
        if not image_ref:
            return None
        if image_ref.startswith(("http://", "https://", "data:")):
            return image_ref
        return self.storage_repo.get_url(image_ref)
