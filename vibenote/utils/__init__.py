"""
Utilities module for VibeNote.
"""
from .exceptions import (
    VibeNoteException,
    MalformedRequestError,
    ValidationError,
    UnauthenticatedError,
    MissingChatIdError,
    NotFoundError,
    ChatNotFoundError,
    MessageNotFoundError,
    DocumentNotFoundError,
    DeckNotFoundError,
    VideoNotFoundError,
    BlobNotFoundError,
    UploadSlotError,
    ModelInvocationError,
    PersistenceError,
    ExternalServiceError,
)

__all__ = [
    "VibeNoteException",
    "MalformedRequestError",
    "ValidationError",
    "UnauthenticatedError",
    "MissingChatIdError",
    "NotFoundError",
    "ChatNotFoundError",
    "MessageNotFoundError",
    "DocumentNotFoundError",
    "DeckNotFoundError",
    "VideoNotFoundError",
    "BlobNotFoundError",
    "UploadSlotError",
    "ModelInvocationError",
    "PersistenceError",
    "ExternalServiceError",
]
