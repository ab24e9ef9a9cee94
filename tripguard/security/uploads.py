"""Screening for trip attachment and receipt uploads.

Runs before anything is handed to file storage: size cap, MIME type
whitelist, magic-byte verification against the declared type, and a
sanitized filename for the storage key.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from loguru import logger

from tripguard.security.errors import InputRejected
from tripguard.security.sanitizer import safe_filename
from tripguard.security.validators import validate_magic_bytes

DEFAULT_MAX_UPLOAD_BYTES = 10 * 1024 * 1024

ALLOWED_ATTACHMENT_TYPES: frozenset[str] = frozenset(
    {
        "application/pdf",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
    }
)


@dataclass(frozen=True)
class UploadPolicy:
    max_bytes: int = DEFAULT_MAX_UPLOAD_BYTES
    allowed_mime_types: frozenset[str] = field(default=ALLOWED_ATTACHMENT_TYPES)


DEFAULT_UPLOAD_POLICY = UploadPolicy()


@dataclass(frozen=True)
class ScreenedUpload:
    """An upload that passed screening, with a storage-safe filename."""

    filename: str
    content_type: str
    size: int


def screen_upload(
    filename: str,
    content_type: str,
    data: bytes,
    policy: UploadPolicy = DEFAULT_UPLOAD_POLICY,
) -> ScreenedUpload:
    """Validate an uploaded file. Raises InputRejected on the first failed check."""
    if not data:
        raise InputRejected("File is required")

    if len(data) > policy.max_bytes:
        raise InputRejected(f"File size must be {_format_size(policy.max_bytes)} or less")

    if content_type not in policy.allowed_mime_types:
        raise InputRejected("File type not allowed")

    if not validate_magic_bytes(data, content_type):
        logger.warning(
            "Upload rejected: content of {!r} does not match declared type {}",
            filename,
            content_type,
        )
        raise InputRejected("File content does not match its declared type")

    return ScreenedUpload(
        filename=safe_filename(filename) or "upload",
        content_type=content_type,
        size=len(data),
    )


def _format_size(num_bytes: int) -> str:
    if num_bytes % (1024 * 1024) == 0:
        return f"{num_bytes // (1024 * 1024)}MB"
    if num_bytes % 1024 == 0:
        return f"{num_bytes // 1024}KB"
    return f"{num_bytes} bytes"
