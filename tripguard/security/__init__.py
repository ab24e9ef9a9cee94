"""Security modules: input sanitization, format validation, upload screening."""

from tripguard.security.errors import InputRejected
from tripguard.security.sanitizer import (
    escape_for_display,
    safe_filename,
    sanitize_fields,
    sanitize_text,
)
from tripguard.security.uploads import ScreenedUpload, UploadPolicy, screen_upload
from tripguard.security.validators import (
    validate_date_format,
    validate_email_format,
    validate_enum_membership,
    validate_identifier,
    validate_magic_bytes,
)

__all__ = [
    "InputRejected",
    "ScreenedUpload",
    "UploadPolicy",
    "escape_for_display",
    "safe_filename",
    "sanitize_fields",
    "sanitize_text",
    "screen_upload",
    "validate_date_format",
    "validate_email_format",
    "validate_enum_membership",
    "validate_identifier",
    "validate_magic_bytes",
]
