"""
Helpers for image references: URL classification, base64 data URLs and
downscaling with Pillow.
"""
import base64
import binascii
import io
import logging
from typing import Tuple

from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)


def is_http_url(value: str) -> bool:
    return value.startswith(("http://", "https://"))


def is_base64_image(value: str) -> bool:
    return value.startswith("data:image/") and ";base64," in value


def is_image_reference(value: str) -> bool:
    """True for http(s) URLs and base64 image data URLs."""
    return isinstance(value, str) and (is_http_url(value) or is_base64_image(value))


def decode_data_url(data_url: str) -> Tuple[bytes, str]:
    """
    Decode a base64 data URL.

    Returns:
        (raw bytes, mime type)

    Raises:
        ValueError: If the value is not a base64 data URL.
    """
    if not data_url.startswith("data:"):
        raise ValueError("Not a data URL")
    header, sep, payload = data_url[5:].partition(",")
    if not sep or not header.endswith(";base64"):
        raise ValueError("Data URL is not base64 encoded")
    mime = header[: -len(";base64")].split(";", 1)[0] or "application/octet-stream"
    try:
        data = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 payload: {e}") from e
    return data, mime


def encode_data_url(data: bytes, mime: str) -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode()}"


def sniff_content_type(data: bytes, fallback: str = "application/octet-stream") -> str:
    """Detect an image's MIME type from its bytes."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            return Image.MIME.get(img.format, fallback)
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError):
        return fallback


def shrink_data_url(data_url: str, max_width: int) -> str:
    """
    Downscale a base64 image data URL to at most `max_width` pixels wide.

    Images already narrow enough are returned unchanged.

    Raises:
        ValueError: If the payload is not a decodable image.
    """
    data, mime = decode_data_url(data_url)
    try:
        with Image.open(io.BytesIO(data)) as img:
            if img.width <= max_width:
                return data_url

            fmt = img.format or "PNG"
            ratio = max_width / img.width
            new_height = max(1, int(img.height * ratio))
            resized = img.resize((max_width, new_height), Image.Resampling.LANCZOS)
            if fmt == "JPEG" and resized.mode in ("RGBA", "P"):
                resized = resized.convert("RGB")

            buf = io.BytesIO()
            resized.save(buf, format=fmt)
            logger.debug(f"Resized inline image {img.width}×{img.height} → {max_width}×{new_height}")
            return encode_data_url(buf.getvalue(), Image.MIME.get(fmt, mime))
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        raise ValueError(f"Unreadable image: {e}") from e
