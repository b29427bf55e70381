"""
Builds the model-ready message list for a chat turn.

Every message keeps its role. The current user message becomes a list of
content blocks: one text block followed by image blocks. Only one image
source is honoured per turn; an inline image takes precedence over library
attachments.
"""
from typing import Any, Dict, List, Optional, Sequence
import logging

from vibenote.schemas import Attachment, IncomingMessage
from vibenote.utils.attachments import strip_images_marker
from vibenote.utils.images import decode_data_url, is_base64_image, is_http_url, shrink_data_url

logger = logging.getLogger(__name__)


def text_block(text: str) -> Dict[str, Any]:
    return {"type": "text", "text": text}


def image_block(url: str) -> Dict[str, Any]:
    return {"type": "image_url", "image_url": {"url": url}}


def placeholder_block(url: str) -> Dict[str, Any]:
    """Text stand-in for an image that could not be turned into an image block."""
    return text_block(f"[Image: {url[:30]}...]")


class MessageContentAssembler:
    """Converts chat messages plus one image source into model content."""

    def __init__(self, max_image_width: int = 1024):
        self.max_image_width = max_image_width

    def assemble(
        self,
        messages: Sequence[IncomingMessage],
        current: IncomingMessage,
        inline_image: Optional[str] = None,
        attachments: Sequence[Attachment] = (),
    ) -> List[Dict[str, Any]]:
        """
        Args:
            messages: Full ordered conversation as sent by the client.
            current: The message (by identity) that receives the images.
            inline_image: Base64 data URL (or URL) of a single uploaded image.
            attachments: Library attachments, used only without inline_image.
        """
        assembled = []
        for message in messages:
            if message is current:
                content = self._current_content(message, inline_image, attachments)
                assembled.append({"role": message.role, "content": content})
            else:
                assembled.append({"role": message.role, "content": message.text()})
        return assembled

    def _current_content(
        self,
        message: IncomingMessage,
        inline_image: Optional[str],
        attachments: Sequence[Attachment],
    ) -> List[Dict[str, Any]]:
        blocks = [text_block(strip_images_marker(message.text()))]

        if inline_image:
            blocks.append(self._inline_block(inline_image))
        elif attachments:
            blocks.extend(self._attachment_block(att) for att in attachments)

        return blocks

    def _inline_block(self, url: str) -> Dict[str, Any]:
        if is_http_url(url):
            return image_block(url)
        try:
            return image_block(shrink_data_url(url, self.max_image_width))
        except ValueError as e:
            logger.warning(f"Inline image is not usable, sending placeholder: {e}")
            return placeholder_block(url)

    def _attachment_block(self, attachment: Attachment) -> Dict[str, Any]:
        url = attachment.url
        if is_http_url(url):
            return image_block(url)
        if is_base64_image(url):
            try:
                decode_data_url(url)
                return image_block(url)
            except ValueError as e:
                logger.warning(f"Attachment has an invalid data URL: {e}")
        return placeholder_block(url)
