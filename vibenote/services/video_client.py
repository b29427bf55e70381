"""
Client for the external video generation service.
"""
from typing import Optional
import logging

import httpx

from vibenote.utils.exceptions import ExternalServiceError

logger = logging.getLogger(__name__)


class VideoClient:
    """Requests explainer videos for a topic."""

    def __init__(self, settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.video_timeout, transport=self._transport)

    async def generate(self, topic: str) -> str:
        """Generate a video and return its URL."""
        try:
            async with self._get_client() as client:
                resp = await client.post(self.settings.video_api_url, json={"topic": topic})
        except httpx.HTTPError as e:
            raise ExternalServiceError("Failed to generate video", str(e)) from e

        if not resp.is_success:
            raise ExternalServiceError("Failed to generate video", f"status {resp.status_code}")

        try:
            video_url = resp.json().get("video_url")
        except ValueError:
            video_url = None
        if not video_url:
            raise ExternalServiceError("No video URL received from API")

        logger.info(f"Video generated for topic '{topic}': {video_url}")
        return video_url
