"""
Custom exceptions for VibeNote application.

Every exception carries the HTTP status it maps to; the handlers in
vibenote.core.app render them as {"error": ..., "details": ...}.
"""
from typing import Optional


class VibeNoteException(Exception):
    """Base exception for VibeNote."""
    status_code = 500

    def __init__(self, message: str, details: Optional[str] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class MalformedRequestError(VibeNoteException):
    """Raised when the request body cannot be parsed."""
    status_code = 400

    def __init__(self, details: Optional[str] = None):
        super().__init__("Invalid request body", details)


class ValidationError(VibeNoteException):
    """Raised for validation errors."""
    status_code = 400


class UnauthenticatedError(VibeNoteException):
    """Raised when no caller identity is present."""
    status_code = 401

    def __init__(self, message: str = "User authentication or chat ID missing"):
        super().__init__(message)


class MissingChatIdError(UnauthenticatedError):
    """Raised when the chat identifier header is missing."""


class NotFoundError(VibeNoteException):
    status_code = 404


class ChatNotFoundError(NotFoundError):
    """Raised when a chat is not found."""
    def __init__(self, chat_id: str):
        self.chat_id = chat_id
        super().__init__(f"Chat not found: {chat_id}")


class MessageNotFoundError(NotFoundError):
    """Raised when a message is not found."""
    def __init__(self, message_id: str):
        self.message_id = message_id
        super().__init__(f"Message not found: {message_id}")


class DocumentNotFoundError(NotFoundError):
    """Raised when a library document is not found or not owned by the caller."""
    def __init__(self, document_id: str):
        self.document_id = document_id
        super().__init__(f"Document not found: {document_id}")


class DeckNotFoundError(NotFoundError):
    """Raised when a flashcard deck is not found."""
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Flashcard deck not found: {key}")


class VideoNotFoundError(NotFoundError):
    """Raised when a video is not found."""
    def __init__(self, video_id: str):
        self.video_id = video_id
        super().__init__(f"Video not found: {video_id}")


class BlobNotFoundError(NotFoundError):
    """Raised when a stored blob is not found."""
    def __init__(self, storage_id: str):
        self.storage_id = storage_id
        super().__init__(f"Stored file not found: {storage_id}")


class UploadSlotError(VibeNoteException):
    """Raised when an upload slot is unknown, expired or already used."""
    status_code = 403


class PayloadTooLargeError(VibeNoteException):
    """Raised when an upload body exceeds the configured size limit."""
    status_code = 413

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(f"Upload exceeds the {limit} byte limit")


class ModelInvocationError(VibeNoteException):
    """Raised when the generative model call fails."""
    status_code = 500

    def __init__(self, details: Optional[str] = None):
        super().__init__("An error occurred processing your request", details)


class PersistenceError(VibeNoteException):
    """Raised when a document-store operation fails."""
    status_code = 500


class ExternalServiceError(VibeNoteException):
    """Raised when an external HTTP service fails."""
    status_code = 502
