"""
Dependency injection container.

Built once at startup by the lifespan manager; routers reach the
controllers through the get_* functions below, which tests override.
"""
from typing import Optional
import logging

from vibenote.config.settings import get_settings
from vibenote.repositories import (
    BaseRepository,
    ChatRepository,
    MessageRepository,
    StorageRepository,
    FlashcardRepository,
    DocumentRepository,
    VideoRepository,
)
from vibenote.controllers import (
    TurnOrchestrator,
    ChatController,
    LibraryController,
    StudyController,
    VideoController,
    StorageController,
)
from vibenote.services.llm_service import llm_service
from vibenote.services.persistence import PersistenceGateway
from vibenote.services.content_assembler import MessageContentAssembler
from vibenote.services.title_generator import TitleGenerator
from vibenote.services.library_client import LibraryClient
from vibenote.services.video_client import VideoClient
from vibenote.services.reminder_client import ReminderClient

logger = logging.getLogger(__name__)


class Container:
    """Holds the database connection, services and controllers."""

    def __init__(self):
        self.settings = get_settings()
        self.base_repo = BaseRepository()
        self.llm = llm_service

        # Repositories
        self.chat_repo: Optional[ChatRepository] = None
        self.message_repo: Optional[MessageRepository] = None
        self.storage_repo: Optional[StorageRepository] = None
        self.flashcard_repo: Optional[FlashcardRepository] = None
        self.document_repo: Optional[DocumentRepository] = None
        self.video_repo: Optional[VideoRepository] = None

        # Controllers
        self.turn_orchestrator: Optional[TurnOrchestrator] = None
        self.chat_controller: Optional[ChatController] = None
        self.library_controller: Optional[LibraryController] = None
        self.study_controller: Optional[StudyController] = None
        self.video_controller: Optional[VideoController] = None
        self.storage_controller: Optional[StorageController] = None

    def _repository(self, repo_cls):
        repo = repo_cls(self.base_repo.db)
        repo.set_settings(self.settings)
        return repo

    async def initialize(self) -> None:
        """Initialize all components (called at startup)."""
        logger.info("Initializing dependency container...")

        await self.base_repo.connect()

        self.chat_repo = self._repository(ChatRepository)
        self.message_repo = self._repository(MessageRepository)
        self.storage_repo = self._repository(StorageRepository)
        self.flashcard_repo = self._repository(FlashcardRepository)
        self.document_repo = self._repository(DocumentRepository)
        self.video_repo = self._repository(VideoRepository)

        self.llm.initialize()
        library_client = LibraryClient(self.settings)
        gateway = PersistenceGateway(
            chat_repo=self.chat_repo,
            message_repo=self.message_repo,
            storage_repo=self.storage_repo,
            settings=self.settings,
        )

        self.turn_orchestrator = TurnOrchestrator(
            gateway=gateway,
            llm_service=self.llm,
            assembler=MessageContentAssembler(max_image_width=self.settings.max_image_width),
            title_generator=TitleGenerator(self.llm, gateway),
            library_client=library_client,
        )
        self.chat_controller = ChatController(
            chat_repo=self.chat_repo,
            message_repo=self.message_repo,
            gateway=gateway,
            settings=self.settings,
        )
        self.library_controller = LibraryController(
            document_repo=self.document_repo,
            storage_repo=self.storage_repo,
            library_client=library_client,
        )
        self.study_controller = StudyController(
            chat_repo=self.chat_repo,
            message_repo=self.message_repo,
            flashcard_repo=self.flashcard_repo,
            llm_service=self.llm,
            reminder_client=ReminderClient(self.settings),
            settings=self.settings,
        )
        self.video_controller = VideoController(self.video_repo, VideoClient(self.settings))
        self.storage_controller = StorageController(self.storage_repo, max_upload_bytes=self.settings.max_upload_bytes)

        logger.info("Dependency container initialized")

    async def shutdown(self) -> None:
        """Finish in-flight chat turns, then close the database."""
        logger.info("Shutting down dependency container...")
        if self.turn_orchestrator:
            await self.turn_orchestrator.drain()
        await self.base_repo.disconnect()
        logger.info("Dependency container shutdown complete")


# Global container instance
container = Container()


def get_container() -> Container:
    return container


def get_turn_orchestrator() -> TurnOrchestrator:
    """Dependency for the chat turn orchestrator."""
    return container.turn_orchestrator


def get_chat_controller() -> ChatController:
    return container.chat_controller


def get_library_controller() -> LibraryController:
    return container.library_controller


def get_study_controller() -> StudyController:
    return container.study_controller


def get_video_controller() -> VideoController:
    return container.video_controller


def get_storage_controller() -> StorageController:
    return container.storage_controller
