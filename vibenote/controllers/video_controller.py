"""
Video controller.
"""
from typing import List
import logging

from vibenote.repositories import VideoRepository
from vibenote.schemas import Video, VideoStatus
from vibenote.services.video_client import VideoClient
from vibenote.utils.exceptions import ExternalServiceError, VideoNotFoundError

logger = logging.getLogger(__name__)


class VideoController:
    """Explainer video requests and their generation status."""

    def __init__(self, video_repo: VideoRepository, video_client: VideoClient):
        self.video_repo = video_repo
        self.client = video_client

    async def generate_video(self, user_id: str, topic: str) -> Video:
        """
        Record the request, call the video service and store the outcome.

        Raises:
            ExternalServiceError: Generation failed; the video is left in
                the failed state with the error recorded.
        """
        video = await self.video_repo.create(user_id, topic.strip())
        await self.video_repo.update_status(video.video_id, VideoStatus.GENERATING)

        try:
            video_url = await self.client.generate(video.topic)
        except ExternalServiceError as e:
            logger.error(f"Video generation failed for {video.video_id}: {e.message}")
            await self.video_repo.update_status(video.video_id, VideoStatus.FAILED, error=e.message)
            raise

        await self.video_repo.update_status(video.video_id, VideoStatus.COMPLETED, video_url=video_url)
        return await self.video_repo.get_by_id(video.video_id)

    async def list_videos(self, user_id: str) -> List[Video]:
        return await self.video_repo.list_by_user(user_id)

    async def get_video(self, video_id: str, user_id: str) -> Video:
        video = await self.video_repo.get_by_id(video_id)
        if not video or video.user_id != user_id:
            raise VideoNotFoundError(video_id)
        return video

    async def delete_video(self, video_id: str, user_id: str) -> None:
        await self.get_video(video_id, user_id)
        await self.video_repo.delete(video_id)
