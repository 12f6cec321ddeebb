"""File validation utilities for upload security."""
from __future__ import annotations

import logging

from fastapi import HTTPException, UploadFile
from app.core.config import settings
from app.core.errors import ValidationAppError
from app.utils.file_validators import (
    MIME_TYPES,
    ImageType,
    get_image_type_from_filename,
    get_image_type_from_mime,
    validate_image_signature,
)

logger = logging.getLogger(__name__)


async def read_upload_file_limited(file: UploadFile) -> bytes:
    """Read an uploaded file in chunks enforcing the max size limit.

    Uses file.size if available (multipart headers), falls back to chunked
    reading with enforcement.

    Args:
        file: FastAPI upload file instance.

    Returns:
        File content as bytes if within the allowed size limit.

    Raises:
        HTTPException: If the file exceeds the configured size limit.
    """
    max_bytes = settings.app.max_upload_size_mb * 1024 * 1024

    file_size = getattr(file, "size", None)

    if file_size is not None and file_size > max_bytes:
        logger.warning(
            "file_validation.rejected_by_header",
            extra={"file_size": file_size, "max_bytes": max_bytes},
        )
        raise HTTPException(
            status_code=413,
            detail=f"File too large. Maximum size: {settings.app.max_upload_size_mb}MB",
        )

    size = 0
    chunks: list[bytes] = []

    while True:
        chunk = await file.read(8192)
        if not chunk:
            break

        size += len(chunk)
        if size > max_bytes:
            logger.warning(
                "file_validation.rejected_by_chunked_read",
                extra={"size": size, "max_bytes": max_bytes},
            )
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum size: {settings.app.max_upload_size_mb}MB",
            )
        chunks.append(chunk)

    return b"".join(chunks)


def resolve_image_type(file: UploadFile, data: bytes) -> tuple[ImageType, str]:
    """Check that an uploaded dog photo is a real JPEG or PNG.

    The declared MIME type, the filename extension and the file signature
    must all agree.

    Returns:
        Tuple of (image_type, mime_type).

    Raises:
        ValidationAppError: If the image is empty, of an unsupported type, or spoofed.
    """
    if not data:
        raise ValidationAppError(code="empty_image", message="Please upload a dog image")

    declared = get_image_type_from_mime(file.content_type)
    if declared is None:
        raise ValidationAppError(
            code="invalid_image_type",
            message="Invalid file type. Only JPEG and PNG images are allowed",
        )

    by_extension = get_image_type_from_filename(file.filename)
    if by_extension is None:
        raise ValidationAppError(
            code="invalid_image_extension",
            message="Invalid file extension. Only .jpg, .jpeg, and .png are allowed",
        )

    if by_extension != declared or not validate_image_signature(data, declared):
        raise ValidationAppError(
            code="image_signature_mismatch",
            message="Image content does not match its declared type",
        )

    return declared, MIME_TYPES[declared]
