"""
Shared fixtures: in-memory repositories, a scripted model, httpx mock
transports for the external services and an ASGI client for the app.
"""
import os
import tempfile

os.environ.setdefault("LOG_DIR", tempfile.mkdtemp(prefix="vibenote-logs-"))
os.environ.setdefault("GROQ_API_KEY", "")

import base64
import io
import json
import uuid
from datetime import datetime, timedelta
from typing import Dict, List, Optional

import httpx
import pytest
from PIL import Image
from pymongo.errors import DuplicateKeyError

from vibenote.config.settings import get_settings
from vibenote.controllers import (
    ChatController,
    LibraryController,
    StorageController,
    StudyController,
    TurnOrchestrator,
    VideoController,
)
from vibenote.core import (
    create_app,
    get_chat_controller,
    get_library_controller,
    get_storage_controller,
    get_study_controller,
    get_turn_orchestrator,
    get_video_controller,
)
from vibenote.schemas import Chat, ChatMessage, FlashcardDeck, LibraryDocument, Video, VideoStatus
from vibenote.services.content_assembler import MessageContentAssembler
from vibenote.services.library_client import LibraryClient
from vibenote.services.persistence import PersistenceGateway
from vibenote.services.reminder_client import ReminderClient
from vibenote.services.title_generator import TitleGenerator
from vibenote.services.video_client import VideoClient
from vibenote.utils.exceptions import BlobNotFoundError

USER_ID = "user_alice"
OTHER_USER_ID = "user_bob"


# ============================================================
# In-memory repositories
# ============================================================

class _Clock:
    """Strictly increasing timestamps so ordering by created_at is deterministic."""

    def __init__(self):
        self._now = datetime(2025, 1, 1, 12, 0, 0)

    def __call__(self) -> datetime:
        self._now += timedelta(milliseconds=5)
        return self._now


class FakeChatRepository:

    def __init__(self, clock):
        self.clock = clock
        self.chats: Dict[str, Chat] = {}
        self.title_updates: List[tuple] = []

    async def create(self, user_id, title, chat_id=None):
        if chat_id in self.chats:
            raise DuplicateKeyError(f"E11000 duplicate key error _id: {chat_id}")
        chat = Chat(chat_id=chat_id or f"chat_{uuid.uuid4().hex[:12]}", user_id=user_id,
                    title=title, created_at=self.clock())
        self.chats[chat.chat_id] = chat
        return chat.model_copy()

    async def get_by_id(self, chat_id):
        chat = self.chats.get(chat_id)
        return chat.model_copy() if chat else None

    async def get_all_by_user(self, user_id, limit=None):
        chats = sorted((c for c in self.chats.values() if c.user_id == user_id),
                       key=lambda c: c.created_at, reverse=True)
        return [c.model_copy() for c in (chats[:limit] if limit else chats)]

    async def search(self, user_id, term):
        return [c.model_copy() for c in self.chats.values()
                if c.user_id == user_id and term.lower() in c.title.lower()]

    async def update_title(self, chat_id, title):
        self.title_updates.append((chat_id, title))
        if chat_id not in self.chats:
            return False
        self.chats[chat_id].title = title
        return True

    async def delete(self, chat_id):
        return self.chats.pop(chat_id, None) is not None


class FakeMessageRepository:

    def __init__(self, clock):
        self.clock = clock
        self.messages: List[ChatMessage] = []

    async def add(self, chat_id, user_id, role, content, image_url=None, related_images=None):
        message = ChatMessage(message_id=f"msg_{uuid.uuid4().hex[:12]}", chat_id=chat_id, user_id=user_id,
                              role=role, content=content, image_url=image_url,
                              related_images=related_images or [], created_at=self.clock())
        self.messages.append(message)
        return message.model_copy()

    def _find(self, message_id) -> Optional[ChatMessage]:
        return next((m for m in self.messages if m.message_id == message_id), None)

    async def get_by_id(self, message_id):
        message = self._find(message_id)
        return message.model_copy() if message else None

    async def list_by_chat(self, chat_id):
        chat_messages = [m for m in self.messages if m.chat_id == chat_id]
        return [m.model_copy() for m in sorted(chat_messages, key=lambda m: m.created_at)]

    async def count_by_chat(self, chat_id):
        return sum(1 for m in self.messages if m.chat_id == chat_id)

    async def latest(self, chat_id):
        chat_messages = await self.list_by_chat(chat_id)
        return chat_messages[-1] if chat_messages else None

    async def patch_image(self, message_id, content, image_url):
        message = self._find(message_id)
        if not message:
            return False
        message.content = content
        message.image_url = image_url
        return True

    async def update_content(self, message_id, content):
        message = self._find(message_id)
        if not message:
            return False
        message.content = content
        return True

    async def delete(self, message_id):
        message = self._find(message_id)
        if not message:
            return False
        self.messages.remove(message)
        return True

    async def delete_by_chat(self, chat_id):
        before = len(self.messages)
        self.messages = [m for m in self.messages if m.chat_id != chat_id]
        return before - len(self.messages)


class FakeStorageRepository:

    def __init__(self, settings):
        self.settings = settings
        self.blobs: Dict[str, tuple] = {}
        self.slots: Dict[str, bool] = {}

    async def create_upload_slot(self):
        token = uuid.uuid4().hex
        self.slots[token] = False
        return token

    async def consume_upload_slot(self, token):
        if self.slots.get(token) is not False:
            return False
        self.slots[token] = True
        return True

    def upload_url(self, token):
        return f"{self.settings.public_base_url}/api/storage/upload/{token}"

    async def store(self, data, content_type, filename=None):
        storage_id = uuid.uuid4().hex[:24]
        self.blobs[storage_id] = (data, content_type)
        return storage_id

    async def read(self, storage_id):
        if storage_id not in self.blobs:
            raise BlobNotFoundError(storage_id)
        return self.blobs[storage_id]

    async def delete(self, storage_id):
        return self.blobs.pop(storage_id, None) is not None

    def get_url(self, storage_id):
        return f"{self.settings.public_base_url}/api/storage/{storage_id}"


class FakeFlashcardRepository:

    def __init__(self, clock):
        self.clock = clock
        self.decks: Dict[str, FlashcardDeck] = {}

    async def upsert(self, chat_id, user_id, flashcards):
        now = self.clock()
        existing = next((d for d in self.decks.values() if d.chat_id == chat_id), None)
        if existing:
            existing.flashcards = list(flashcards)
            existing.updated_at = now
            return existing.model_copy()
        deck = FlashcardDeck(deck_id=f"deck_{uuid.uuid4().hex[:12]}", chat_id=chat_id, user_id=user_id,
                             flashcards=list(flashcards), created_at=now, updated_at=now)
        self.decks[deck.deck_id] = deck
        return deck.model_copy()

    async def get_by_chat(self, chat_id):
        deck = next((d for d in self.decks.values() if d.chat_id == chat_id), None)
        return deck.model_copy() if deck else None

    async def get_by_id(self, deck_id):
        deck = self.decks.get(deck_id)
        return deck.model_copy() if deck else None

    async def list_by_user(self, user_id):
        return [d.model_copy() for d in self.decks.values() if d.user_id == user_id]

    async def delete(self, deck_id):
        return self.decks.pop(deck_id, None) is not None


class FakeDocumentRepository:

    def __init__(self):
        self.documents: Dict[str, LibraryDocument] = {}

    async def create(self, document):
        self.documents[document.document_id] = document.model_copy()
        return document

    async def get_by_id(self, document_id):
        document = self.documents.get(document_id)
        return document.model_copy() if document else None

    async def list_by_user(self, user_id):
        return [d.model_copy() for d in self.documents.values() if d.user_id == user_id]

    async def update_ingest_status(self, document_id, status, error=None):
        document = self.documents.get(document_id)
        if not document:
            return False
        document.ingest_status = status
        document.ingest_error = error
        return True

    async def delete(self, document_id):
        return self.documents.pop(document_id, None) is not None


class FakeVideoRepository:

    def __init__(self, clock):
        self.clock = clock
        self.videos: Dict[str, Video] = {}
        self.status_history: List[VideoStatus] = []

    async def create(self, user_id, topic):
        now = self.clock()
        video = Video(video_id=f"vid_{uuid.uuid4().hex[:12]}", user_id=user_id, topic=topic,
                      created_at=now, updated_at=now)
        self.videos[video.video_id] = video
        self.status_history.append(video.generation_status)
        return video.model_copy()

    async def update_status(self, video_id, status, video_url=None, error=None):
        video = self.videos.get(video_id)
        if not video:
            return False
        video.generation_status = status
        video.updated_at = self.clock()
        if video_url:
            video.video_url = video_url
        if error:
            video.error = error
        self.status_history.append(status)
        return True

    async def get_by_id(self, video_id):
        video = self.videos.get(video_id)
        return video.model_copy() if video else None

    async def list_by_user(self, user_id):
        return [v.model_copy() for v in self.videos.values() if v.user_id == user_id]

    async def delete(self, video_id):
        return self.videos.pop(video_id, None) is not None


# ============================================================
# Scripted model
# ============================================================

class FakeLLM:
    """Stands in for LLMService; records every call."""

    def __init__(self):
        self.tokens = ["A derivative ", "measures how a function ", "changes."]
        self.stream_error: Optional[Exception] = None
        self.fail_after: Optional[int] = None
        self.title = "Understanding Derivatives"
        self.title_error: Optional[Exception] = None
        self.structured: Dict[str, dict] = {}
        self.stream_calls: List[list] = []
        self.title_calls: List[str] = []
        self.structured_calls: List[str] = []

    async def stream_chat(self, messages, system_prompt=None):
        self.stream_calls.append(messages)
        if self.stream_error and self.fail_after is None:
            raise self.stream_error
        for i, token in enumerate(self.tokens):
            if self.stream_error and i == self.fail_after:
                raise self.stream_error
            yield token

    async def generate_chat_title(self, user_message):
        self.title_calls.append(user_message)
        if self.title_error:
            raise self.title_error
        return self.title

    async def generate_structured(self, prompt, schema, shape):
        self.structured_calls.append(prompt)
        return schema.model_validate(self.structured[schema.__name__])


# ============================================================
# External services over httpx.MockTransport
# ============================================================

class FakeServices:
    """Programmable replies for the library, video and reminder services."""

    def __init__(self, storage: FakeStorageRepository):
        self.storage = storage
        self.library_images: List[dict] = []
        self.library_status = 200
        self.ingest_status = 200
        self.video_reply: dict = {"video_url": "https://videos.test/v/1.mp4"}
        self.video_status = 200
        self.reminder_status = 200
        self.requests: List[httpx.Request] = []

    def paths(self) -> List[str]:
        return [r.url.path for r in self.requests]

    async def handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path.startswith("/api/storage/upload/"):
            token = path.rsplit("/", 1)[-1]
            if not await self.storage.consume_upload_slot(token):
                return httpx.Response(403, json={"error": "slot used"})
            storage_id = await self.storage.store(request.content, request.headers.get("content-type", ""))
            return httpx.Response(200, json={"storageId": storage_id})
        if path.endswith("/retrieval"):
            return httpx.Response(self.library_status, json={"image_content": self.library_images})
        if path.endswith("/ingest"):
            return httpx.Response(self.ingest_status, json={"ok": self.ingest_status == 200})
        if path.endswith("/generate-video"):
            return httpx.Response(self.video_status, json=self.video_reply)
        if path.endswith("/reminders"):
            return httpx.Response(self.reminder_status, json={})
        return httpx.Response(404)


# ============================================================
# Helpers
# ============================================================

def png_data_url(width: int = 8, height: int = 8, color=(200, 30, 30)) -> str:
    buf = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buf, format="PNG")
    return "data:image/png;base64," + base64.b64encode(buf.getvalue()).decode()


def sse_events(body: str) -> List[dict]:
    return [json.loads(chunk[len("data: "):]) for chunk in body.split("\n\n") if chunk.startswith("data: ")]


def turn_body(text: str, **extra) -> bytes:
    return json.dumps({"messages": [{"role": "user", "content": text}], **extra}).encode()


def identity(chat_id: str = "chat_test", user_id: str = USER_ID) -> dict:
    return {"id": chat_id, "X-User-Id": user_id}


# ============================================================
# Fixtures
# ============================================================

@pytest.fixture
def settings():
    return get_settings().model_copy(update={"reminder_api_url": "http://calendar.test/reminders", "max_upload_bytes": 4096})


@pytest.fixture
def clock():
    return _Clock()


@pytest.fixture
def chat_repo(clock):
    return FakeChatRepository(clock)


@pytest.fixture
def message_repo(clock):
    return FakeMessageRepository(clock)


@pytest.fixture
def storage_repo(settings):
    return FakeStorageRepository(settings)


@pytest.fixture
def flashcard_repo(clock):
    return FakeFlashcardRepository(clock)


@pytest.fixture
def document_repo():
    return FakeDocumentRepository()


@pytest.fixture
def video_repo(clock):
    return FakeVideoRepository(clock)


@pytest.fixture
def llm():
    return FakeLLM()


@pytest.fixture
def services(storage_repo):
    return FakeServices(storage_repo)


@pytest.fixture
def transport(services):
    return httpx.MockTransport(services.handle)


@pytest.fixture
def gateway(chat_repo, message_repo, storage_repo, settings, transport):
    return PersistenceGateway(chat_repo, message_repo, storage_repo, settings, transport=transport)


@pytest.fixture
def library_client(settings, transport):
    return LibraryClient(settings, transport=transport)


@pytest.fixture
def orchestrator(gateway, llm, library_client, settings):
    return TurnOrchestrator(
        gateway=gateway,
        llm_service=llm,
        assembler=MessageContentAssembler(max_image_width=settings.max_image_width),
        title_generator=TitleGenerator(llm, gateway),
        library_client=library_client,
    )


@pytest.fixture
def chat_controller(chat_repo, message_repo, gateway, settings):
    return ChatController(chat_repo, message_repo, gateway, settings)


@pytest.fixture
def library_controller(document_repo, storage_repo, library_client):
    return LibraryController(document_repo, storage_repo, library_client)


@pytest.fixture
def study_controller(chat_repo, message_repo, flashcard_repo, llm, settings, transport):
    return StudyController(chat_repo, message_repo, flashcard_repo, llm,
                           ReminderClient(settings, transport=transport), settings)


@pytest.fixture
def video_controller(video_repo, settings, transport):
    return VideoController(video_repo, VideoClient(settings, transport=transport))


@pytest.fixture
def storage_controller(storage_repo, settings):
    return StorageController(storage_repo, max_upload_bytes=settings.max_upload_bytes)


@pytest.fixture
def app(orchestrator, chat_controller, library_controller, study_controller, video_controller, storage_controller):
    application = create_app()
    application.dependency_overrides.update({
        get_turn_orchestrator: lambda: orchestrator,
        get_chat_controller: lambda: chat_controller,
        get_library_controller: lambda: library_controller,
        get_study_controller: lambda: study_controller,
        get_video_controller: lambda: video_controller,
        get_storage_controller: lambda: storage_controller,
    })
    return application


@pytest.fixture
async def client(app):
    async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as c:
        yield c
