"""
Validation helpers for message payloads.
"""
from typing import List, Optional
from urllib.parse import urlparse

from dm_core.core.exceptions import UnsupportedMedia
from dm_core.models.message import MediaType

IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "webp", "bmp", "heic"}
GIF_EXTENSIONS = {"gif"}
VIDEO_EXTENSIONS = {"mp4", "webm", "mov", "m4v"}


def _extension(url: str) -> str:
    path = urlparse(url).path
    if "." not in path.rsplit("/", 1)[-1]:
        return ""
    return path.rsplit(".", 1)[-1].lower()


def infer_media_type(media_urls: List[str]) -> MediaType:
    """
    Infer the media type of a message from the extension of its first URL.

    Args:
        media_urls: Ordered media URLs attached to the message

    Returns:
        MediaType.NONE when there is no media

    Raises:
        UnsupportedMedia: If the extension is not a known image, gif or video type
    """
    if not media_urls:
        return MediaType.NONE

    ext = _extension(media_urls[0])
    if ext in GIF_EXTENSIONS:
        return MediaType.GIF
    if ext in IMAGE_EXTENSIONS:
        return MediaType.IMAGE
    if ext in VIDEO_EXTENSIONS:
        return MediaType.VIDEO
    raise UnsupportedMedia(f"Cannot infer media type from '{media_urls[0]}'")


def resolve_media_type(
    media_urls: List[str],
    media_type: Optional[MediaType | str] = None
) -> MediaType:
    """
    Validate an explicit media type against the attached URLs, or infer one.

    Raises:
        UnsupportedMedia: Unknown type, media type without URLs, or URLs typed as none
    """
    if media_type is None:
        return infer_media_type(media_urls)

    try:
        resolved = MediaType(media_type)
    except ValueError:
        raise UnsupportedMedia(f"Unknown media type '{media_type}'")

    if media_urls and resolved == MediaType.NONE:
        raise UnsupportedMedia("Media attached but media type is 'none'")
    if not media_urls and resolved != MediaType.NONE:
        raise UnsupportedMedia(f"Media type '{resolved.value}' given without media")
    return resolved


def normalize_content(content: Optional[str]) -> str:
    """Strip surrounding whitespace; None becomes an empty string."""
    if not content:
        return ""
    return content.strip()
