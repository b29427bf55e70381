"""
Controllers module for VibeNote.
"""
from .turn_orchestrator import TurnOrchestrator
from .chat_controller import ChatController
from .library_controller import LibraryController
from .study_controller import StudyController
from .video_controller import VideoController
from .storage_controller import StorageController

__all__ = [
    "TurnOrchestrator",
    "ChatController",
    "LibraryController",
    "StudyController",
    "VideoController",
    "StorageController",
]
