"""Image utility functions: inline data URIs and media types."""

from __future__ import annotations

import base64
import re
from pathlib import Path

DATA_URI_PATTERN = re.compile(r"^data:(image/[a-zA-Z+]+);base64,(.+)$", re.DOTALL)

DEFAULT_MEDIA_TYPE = "image/png"


def get_media_type(image_path: Path) -> str:
    """Get MIME type for image file."""
    suffix = image_path.suffix.lower()
    return {
        ".jpg": "image/jpeg",
        ".jpeg": "image/jpeg",
        ".png": "image/png",
        ".gif": "image/gif",
        ".webp": "image/webp",
    }.get(suffix, "image/jpeg")


def sniff_media_type(data: bytes) -> str:
    """Guess the media type from the leading magic bytes."""
    if data.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if data.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if data[:6] in (b"GIF87a", b"GIF89a"):
        return "image/gif"
    if data[:4] == b"RIFF" and data[8:12] == b"WEBP":
        return "image/webp"
    return DEFAULT_MEDIA_TYPE


def to_data_uri(data: bytes, media_type: str) -> str:
    """Inline representation used for screen images."""
    return f"data:{media_type};base64,{base64.b64encode(data).decode('ascii')}"


def split_data_uri(image_url: str) -> tuple[str, str]:
    """
    Split an image reference into (media_type, payload).

    Inline ``data:image/...;base64,`` URIs yield their subtype and base64
    payload. Anything else (a remote URL, a bare base64 string) is returned
    whole with the PNG media type.
    """
    match = DATA_URI_PATTERN.match(image_url)
    if match:
        return match.group(1), match.group(2)
    return DEFAULT_MEDIA_TYPE, image_url


def is_inline(image_url: str) -> bool:
    return image_url.startswith("data:")
