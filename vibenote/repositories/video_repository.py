"""
Video repository.
"""
from typing import Optional, List
import logging
import uuid
from datetime import datetime

from vibenote.schemas import Video, VideoStatus

logger = logging.getLogger(__name__)


class VideoRepository:
    """Repository for generated videos."""

    def __init__(self, db):
        self.db = db
        self.settings = None

    def set_settings(self, settings):
        self.settings = settings

    @property
    def collection(self):
        return self.db[self.settings.videos_collection]

    @staticmethod
    def _to_video(doc: dict) -> Video:
        doc["video_id"] = doc.pop("_id")
        return Video(**doc)

    async def create(self, user_id: str, topic: str) -> Video:
        now = datetime.utcnow()
        video = Video(
            video_id=f"vid_{uuid.uuid4().hex[:12]}",
            user_id=user_id,
            topic=topic,
            created_at=now,
            updated_at=now,
        )
        await self.collection.insert_one({
            "_id": video.video_id,
            **video.model_dump(exclude={"video_id"})
        })
        return video

    async def update_status(
        self,
        video_id: str,
        status: VideoStatus,
        video_url: Optional[str] = None,
        error: Optional[str] = None,
    ) -> bool:
        """Set the generation status; URL and error are only written when given."""
        update = {"generation_status": status.value, "updated_at": datetime.utcnow()}
        if video_url:
            update["video_url"] = video_url
        if error:
            update["error"] = error
        result = await self.collection.update_one({"_id": video_id}, {"$set": update})
        return result.matched_count > 0

    async def get_by_id(self, video_id: str) -> Optional[Video]:
        doc = await self.collection.find_one({"_id": video_id})
        return self._to_video(doc) if doc else None

    async def list_by_user(self, user_id: str) -> List[Video]:
        cursor = self.collection.find({"user_id": user_id}).sort("created_at", -1)
        return [self._to_video(doc) async for doc in cursor]

    async def delete(self, video_id: str) -> bool:
        result = await self.collection.delete_one({"_id": video_id})
        return result.deleted_count > 0
