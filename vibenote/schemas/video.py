"""
Video schemas.
"""
from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime

from .common import VideoStatus


class Video(BaseModel):
    video_id: str
    user_id: str
    topic: str
    video_url: str = ""
    generation_status: VideoStatus = VideoStatus.PENDING
    error: Optional[str] = None
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class VideoCreate(BaseModel):
    topic: str = Field(..., min_length=1)
