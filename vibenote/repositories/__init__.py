"""
Repositories module for VibeNote.
"""
from .base import BaseRepository
from .chat_repository import ChatRepository
from .message_repository import MessageRepository
from .storage_repository import StorageRepository
from .flashcard_repository import FlashcardRepository
from .document_repository import DocumentRepository
from .video_repository import VideoRepository

__all__ = [
    "BaseRepository",
    "ChatRepository",
    "MessageRepository",
    "StorageRepository",
    "FlashcardRepository",
    "DocumentRepository",
    "VideoRepository",
]
