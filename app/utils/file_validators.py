"""File validation utilities for content security.

Validates image signatures (magic numbers) to prevent MIME type spoofing
before a dog photo is forwarded to the video provider.
"""

from __future__ import annotations

import logging
from pathlib import PurePath
from typing import Literal, Optional, cast

logger = logging.getLogger(__name__)

ImageType = Literal["jpeg", "png"]

ALLOWED_EXTENSIONS: dict[str, ImageType] = {
    ".jpg": "jpeg",
    ".jpeg": "jpeg",
    ".png": "png",
}

MIME_TYPES: dict[ImageType, str] = {
    "jpeg": "image/jpeg",
    "png": "image/png",
}


def validate_image_signature(data: bytes, expected_type: ImageType) -> bool:
    """Validate image magic numbers to prevent MIME type spoofing.

    Args:
        data: File content as bytes.
        expected_type: Expected image type ('jpeg' or 'png').

    Returns:
        True if signature matches the expected type, False otherwise.
    """
    SIGNATURES = {
        "jpeg": [b"\xff\xd8\xff"],
        "png": [b"\x89PNG\r\n\x1a\n"],
    }

    for sig in SIGNATURES.get(expected_type, []):
        if data.startswith(sig):
            return True

    logger.warning(
        "file_signature.invalid",
        extra={
            "expected_type": expected_type,
            "actual_prefix": data[:8] if data else "EMPTY",
        },
    )
    return False


def get_image_type_from_mime(mime_type: str | None) -> Optional[ImageType]:
    """Map MIME type to internal image type.

    Returns:
        ImageType ('jpeg' or 'png') or None if unsupported.
    """
    mime_map = {
        "image/jpeg": "jpeg",
        "image/jpg": "jpeg",
        "image/pjpeg": "jpeg",
        "image/png": "png",
    }
    return cast(Optional[ImageType], mime_map.get((mime_type or "").lower()))


def get_image_type_from_filename(filename: str | None) -> Optional[ImageType]:
    """Map a filename extension (.jpg, .jpeg, .png) to an image type."""
    if not filename:
        return None
    return ALLOWED_EXTENSIONS.get(PurePath(filename).suffix.lower())
