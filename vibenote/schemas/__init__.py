"""
Schemas module for VibeNote.
"""
from .common import IngestStatus, VideoStatus, StorageUploadResponse
from .chat import (
    ContentItem,
    Attachment,
    IncomingMessage,
    TurnData,
    ChatTurnRequest,
    ChatTurn,
    Chat,
    ChatPreview,
    ChatMessage,
    ChatMessageResponse,
    ChatCreate,
    ChatCreateResponse,
    ChatTitleUpdate,
    MessageUpdate,
    MessageCountResponse,
    ClearHistoryResponse,
)
from .library import (
    LibraryDocument,
    UploadedFileInfo,
    DocumentUploadResponse,
    RetrievalRequest,
    RetrievalMetadata,
    RetrievalResult,
)
from .study import (
    QuizOptions,
    QuizQuestion,
    QuizPayload,
    QuizRequest,
    QuizResponse,
    Flashcard,
    FlashcardPayload,
    FlashcardDeck,
    FlashcardRequest,
    FlashcardResponse,
)
from .video import Video, VideoCreate

__all__ = [
    # Common
    "IngestStatus",
    "VideoStatus",
    "StorageUploadResponse",
    # Chat
    "ContentItem",
    "Attachment",
    "IncomingMessage",
    "TurnData",
    "ChatTurnRequest",
    "ChatTurn",
    "Chat",
    "ChatPreview",
    "ChatMessage",
    "ChatMessageResponse",
    "ChatCreate",
    "ChatCreateResponse",
    "ChatTitleUpdate",
    "MessageUpdate",
    "MessageCountResponse",
    "ClearHistoryResponse",
    # Library
    "LibraryDocument",
    "UploadedFileInfo",
    "DocumentUploadResponse",
    "RetrievalRequest",
    "RetrievalMetadata",
    "RetrievalResult",
    # Study
    "QuizOptions",
    "QuizQuestion",
    "QuizPayload",
    "QuizRequest",
    "QuizResponse",
    "Flashcard",
    "FlashcardPayload",
    "FlashcardDeck",
    "FlashcardRequest",
    "FlashcardResponse",
    # Video
    "Video",
    "VideoCreate",
]
