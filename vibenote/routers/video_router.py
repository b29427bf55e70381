"""
Video API router.
"""
from fastapi import APIRouter, Depends
from typing import List

from vibenote.controllers import VideoController
from vibenote.core.auth import require_user_id
from vibenote.core.dependencies import get_video_controller
from vibenote.schemas import Video, VideoCreate

router = APIRouter(prefix="/api/videos", tags=["Videos"])


@router.post("", response_model=Video, status_code=201)
async def generate_video(
    request: VideoCreate,
    user_id: str = Depends(require_user_id),
    controller: VideoController = Depends(get_video_controller),
):
    """Generate an explainer video for a topic (blocks until the video service answers)."""
    return await controller.generate_video(user_id, request.topic)


@router.get("", response_model=List[Video])
async def list_videos(
    user_id: str = Depends(require_user_id),
    controller: VideoController = Depends(get_video_controller),
):
    return await controller.list_videos(user_id)


@router.get("/{video_id}", response_model=Video)
async def get_video(
    video_id: str,
    user_id: str = Depends(require_user_id),
    controller: VideoController = Depends(get_video_controller),
):
    return await controller.get_video(video_id, user_id)


@router.delete("/{video_id}")
async def delete_video(
    video_id: str,
    user_id: str = Depends(require_user_id),
    controller: VideoController = Depends(get_video_controller),
):
    await controller.delete_video(video_id, user_id)
    return {"message": f"Video {video_id} deleted"}
