"""
Client for the external library service (document ingest and image retrieval).
"""
from typing import Optional
import logging

import httpx

from vibenote.schemas import RetrievalMetadata, RetrievalResult
from vibenote.utils.exceptions import ExternalServiceError
from vibenote.utils.images import is_image_reference

logger = logging.getLogger(__name__)


class LibraryClient:
    """Encapsulates HTTP communication with the library service."""

    def __init__(self, settings, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.settings = settings
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.settings.http_timeout, transport=self._transport)

    async def retrieve_images(self, query: str, user_id: str) -> RetrievalResult:
        """
        Ask the library for images relevant to `query`.

        Only http(s) URLs and base64 image data URLs are kept. Transport
        errors and non-2xx replies come back as a failed RetrievalResult.
        """
        try:
            async with self._get_client() as client:
                resp = await client.post(
                    self.settings.service_url("retrieval"),
                    json={"user_id": user_id, "query": query},
                )
                if not resp.is_success:
                    raise ExternalServiceError(f"API request failed with status: {resp.status_code}")
                data = resp.json()
        except (httpx.HTTPError, ExternalServiceError, ValueError) as e:
            logger.warning(f"Library retrieval failed for user {user_id}: {e}")
            return RetrievalResult(success=False, error=f"Error retrieving images: {e}")

        images = []
        metadata = RetrievalMetadata()
        items = data.get("image_content") if isinstance(data, dict) else None
        for item in items if isinstance(items, list) else []:
            if not isinstance(item, dict):
                continue
            reference = item.get("image_url") or item.get("content")
            if isinstance(reference, str) and is_image_reference(reference):
                images.append(reference)
            elif reference:
                logger.debug("Discarding retrieval item that is not an image reference")

            if item.get("document_id"):
                metadata.document_ids.append(item["document_id"])
            if item.get("download_url"):
                metadata.download_urls.append(item["download_url"])
            if item.get("filename"):
                metadata.filenames.append(item["filename"])

        logger.info(f"Library retrieval returned {len(images)} images for user {user_id}")
        return RetrievalResult(success=True, images=images, metadata=metadata)

    async def ingest(self, user_id: str, file_url: str) -> None:
        """Send a stored document to the library service for ingestion."""
        try:
            async with self._get_client() as client:
                resp = await client.post(
                    self.settings.service_url("ingest"),
                    json={"user_id": user_id, "file_url": file_url},
                )
        except httpx.HTTPError as e:
            raise ExternalServiceError("Ingest request failed", str(e)) from e
        if not resp.is_success:
            raise ExternalServiceError(f"Ingest failed with status: {resp.status_code}")
