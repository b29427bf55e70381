"""
Routers module for VibeNote.
"""
from . import chat_router
from . import chats_router
from . import library_router
from . import study_router
from . import video_router
from . import storage_router

__all__ = [
    "chat_router",
    "chats_router",
    "library_router",
    "study_router",
    "video_router",
    "storage_router",
]
