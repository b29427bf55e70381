"""
Core module for VibeNote application setup.
"""
from .app import create_app
from .dependencies import (
    get_turn_orchestrator,
    get_chat_controller,
    get_library_controller,
    get_study_controller,
    get_video_controller,
    get_storage_controller,
)

__all__ = [
    "create_app",
    "get_turn_orchestrator",
    "get_chat_controller",
    "get_library_controller",
    "get_study_controller",
    "get_video_controller",
    "get_storage_controller",
]
