"""
Attachment normalization for chat requests.

Chat clients put image attachments in one of three places. This module
collapses them into a single list of Attachment objects at the request
boundary so nothing downstream has to look in more than one place.
"""
import mimetypes
import re
from typing import Any, Dict, List
from urllib.parse import urlparse

from vibenote.schemas import Attachment

# Trailing caption marker added by the chat client when images are attached
IMAGES_ATTACHED_PATTERN = re.compile(r"\n\n\[Images attached:.*?\]\Z")

ATTACHMENTS_FIELD = "experimental_attachments"


def strip_images_marker(text: str) -> str:
    """Remove a trailing "\\n\\n[Images attached: ...]" marker, if present."""
    return IMAGES_ATTACHED_PATTERN.sub("", text, count=1)


def infer_content_type(url: str) -> str:
    """Best-effort content type from a data URL header or the URL's extension."""
    if url.startswith("data:"):
        header = url[5:].split(",", 1)[0]
        mime = header.split(";", 1)[0]
        return mime or "application/octet-stream"

    guessed, _ = mimetypes.guess_type(urlparse(url).path)
    return guessed or "application/octet-stream"


def _locate_raw_attachments(body: Dict[str, Any]) -> List[Any]:
    """
    Find the raw attachment list. First match wins:

      1. body.experimental_attachments
      2. body.options.experimental_attachments
      3. body.messages[-1].experimental_attachments

    A location "matches" when the field is present and not null; a present
    value that is not a list yields an empty list.
    """
    top_level = body.get(ATTACHMENTS_FIELD)
    if top_level is not None:
        return top_level if isinstance(top_level, list) else []

    options = body.get("options")
    if isinstance(options, dict) and options.get(ATTACHMENTS_FIELD) is not None:
        nested = options[ATTACHMENTS_FIELD]
        return nested if isinstance(nested, list) else []

    messages = body.get("messages")
    if isinstance(messages, list) and messages:
        last = messages[-1]
        if isinstance(last, dict) and last.get(ATTACHMENTS_FIELD) is not None:
            on_message = last[ATTACHMENTS_FIELD]
            return on_message if isinstance(on_message, list) else []

    return []


def normalize_attachments(body: Dict[str, Any]) -> List[Attachment]:
    """
    Produce the ordered attachment list for a parsed request body.

    Entries without a non-empty string `url` are skipped. URLs are not
    checked for reachability.
    """
    attachments = []
    for item in _locate_raw_attachments(body):
        if not isinstance(item, dict):
            continue
        url = item.get("url")
        if not isinstance(url, str) or not url:
            continue
        content_type = item.get("contentType") or item.get("content_type") or infer_content_type(url)
        attachments.append(Attachment(url=url, content_type=content_type))
    return attachments
